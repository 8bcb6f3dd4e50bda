import json
import os
from typing import Any, Dict, List, Optional

from happytrails.core.config import settings
from happytrails.core.logger import logger


def load_site_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads the marketing content (brand, services, pricing, testimonials).
    Raises FileNotFoundError if the file is missing, ValueError if it is not JSON.
    """
    config_path = path or settings.SITE_CONFIG_PATH
    if not os.path.exists(config_path):
        logger.critical(f"❌ Site config '{config_path}' not found, pages cannot render.")
        raise FileNotFoundError(f"Site configuration not found at {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        logger.critical(f"❌ Invalid JSON in site config: {e}")
        raise ValueError(f"Invalid JSON in site config file: {e}")

    logger.info(f"✅ Site config loaded for: {config.get('brand_name', 'Unknown')}")
    return config

def get_services(config: Dict[str, Any]) -> List[Dict[str, str]]:
    return config.get("services", [])

def get_pricing(config: Dict[str, Any]) -> List[Dict[str, str]]:
    return config.get("pricing", [])

def get_testimonials(config: Dict[str, Any]) -> List[Dict[str, str]]:
    return config.get("testimonials", [])
