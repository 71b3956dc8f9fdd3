from typing import Dict, List, Optional

from app.core.config_loader import load_catalog, get_catalog_section
from app.core.logger import logger
from app.models.domain import Resource, Service, ServiceType


class Catalog:
    """Immutable reference data: bookable services and the resources that fulfil them."""

    def __init__(self, services: List[Service], resources: List[Resource]):
        self._services = tuple(services)
        self._resources = tuple(resources)
        self._services_by_id: Dict[str, Service] = {s.id: s for s in self._services}
        self._resources_by_id: Dict[str, Resource] = {r.id: r for r in self._resources}

    @classmethod
    def from_file(cls, path: str) -> "Catalog":
        raw = load_catalog(path)
        services = [Service.model_validate(item) for item in get_catalog_section(raw, "services")]
        resources = [Resource.model_validate(item) for item in get_catalog_section(raw, "resources")]
        return cls(services, resources)

    def list_services(self) -> List[Service]:
        return list(self._services)

    def get_service(self, service_id: str) -> Optional[Service]:
        service = self._services_by_id.get(service_id)
        if service is None:
            logger.debug(f"🔍 Service '{service_id}' not in catalog")
        return service

    def list_resources(self, service_type: ServiceType) -> List[Resource]:
        """
        Resources able to fulfil the given service type.
        An empty list means none are configured, not an error.
        """
        return [r for r in self._resources if r.supports(service_type)]

    @property
    def resources_by_id(self) -> Dict[str, Resource]:
        return dict(self._resources_by_id)
