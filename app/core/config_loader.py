import json
import os
from typing import Dict, Any, List

from app.core.logger import logger

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

def resolve_path(path: str) -> str:
    """Relative paths are taken from the project root, not the working directory."""
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)

def load_catalog(path: str) -> Dict[str, Any]:
    """
    Loads the services/resources catalog from a JSON file.
    Raises FileNotFoundError if the catalog is missing.
    Returns: Dict with 'services' and 'resources' lists.
    """
    full_path = resolve_path(path)
    if not os.path.exists(full_path):
        logger.critical(f"❌ Catalog file '{full_path}' not found! Cannot start without reference data.")
        raise FileNotFoundError(f"Catalog file not found at {full_path}")

    try:
        with open(full_path, 'r', encoding='utf-8') as f:
            catalog = json.load(f)
    except json.JSONDecodeError as e:
        logger.critical(f"❌ Failed to parse catalog JSON: {e}")
        raise ValueError(f"Invalid JSON in catalog file: {e}")

    services = catalog.get("services", [])
    resources = catalog.get("resources", [])
    logger.info(f"✅ Catalog loaded: {len(services)} services, {len(resources)} resources")
    return {"services": services, "resources": resources}

def get_catalog_section(catalog: Dict[str, Any], section: str) -> List[Dict[str, Any]]:
    """
    Helper to get one list from the catalog ('services' or 'resources').
    Returns: list of raw records, empty if the section is missing.
    """
    return catalog.get(section) or []
