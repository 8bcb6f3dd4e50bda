import datetime as dt
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from fastapi import Request
from fastapi.templating import Jinja2Templates

from happytrails.core.config_loader import load_site_config

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


@lru_cache(maxsize=1)
def site_config() -> Dict[str, Any]:
    return load_site_config()

def render(request: Request, name: str, /, status_code: int = 200, **context: Any):
    """Render a page with the navigation context (brand, current user) filled in."""
    visitor = getattr(request.state, "visitor", None)
    context.setdefault("user", visitor.user if visitor is not None else None)
    context.setdefault("site", site_config())
    context.setdefault("current_year", dt.date.today().year)
    return templates.TemplateResponse(request, name, context, status_code=status_code)
