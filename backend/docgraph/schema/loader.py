"""
Catalog fixture loader.

Loads DocType definitions and sample documents from YAML files and writes
them into the store.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

from docgraph.schema.models import DocTypeDefinition, FieldType

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent


class CatalogFixture(BaseModel):
    """A parsed fixture: DocTypes in declaration order plus sample documents."""

    name: str
    description: str = ""
    doctypes: list[DocTypeDefinition] = Field(default_factory=list)
    documents: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)

    def get_doctype(self, name: str) -> Optional[DocTypeDefinition]:
        for doctype in self.doctypes:
            if doctype.name == name:
                return doctype
        return None

    def get_doctype_names(self) -> list[str]:
        return [d.name for d in self.doctypes]


class CatalogLoader:
    """
    Loads and validates catalog fixtures.

    Fixture layout:

        catalog: {name: erp, description: ...}
        modules:
          CRM: [Customer, Lead]
        doctypes:
          - name: Customer
            fields:
              - {fieldname: customer_name, fieldtype: Data, reqd: 1}
        documents:
          Customer:
            - {name: CUST-001, customer_name: Acme}

    Usage:
        loader = CatalogLoader("schemas")
        fixture = loader.load_fixture("erp")
    """

    def __init__(self, schemas_dir: Optional[str] = None):
        """
        Args:
            schemas_dir: Directory containing fixture YAML files. A relative
                        path is taken from the project root, not the working
                        directory. Defaults to project root /schemas/
        """
        if schemas_dir:
            path = Path(schemas_dir)
            self.schemas_dir = path if path.is_absolute() else PROJECT_ROOT / path
        else:
            self.schemas_dir = PROJECT_ROOT / "schemas"
        self._fixtures: dict[str, CatalogFixture] = {}

    def load_fixture(self, fixture_name: str) -> CatalogFixture:
        """
        Load a fixture from YAML file.

        Args:
            fixture_name: Name of the fixture (without .yaml extension)

        Returns:
            Validated CatalogFixture
        """
        if fixture_name in self._fixtures:
            return self._fixtures[fixture_name]

        fixture_path = self.schemas_dir / f"{fixture_name}.yaml"
        if not fixture_path.exists():
            raise FileNotFoundError(f"Catalog fixture not found: {fixture_path}")

        logger.info(f"Loading catalog fixture from {fixture_path}")
        with open(fixture_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        fixture = self.parse_fixture(data, default_name=fixture_name)
        self.validate_fixture(fixture)

        self._fixtures[fixture_name] = fixture
        return fixture

    def parse_fixture(self, data: dict, default_name: str = "catalog") -> CatalogFixture:
        """Parse raw YAML data into a CatalogFixture."""
        info = data.get("catalog") or {}

        # Module membership may be declared on the module or on the DocType.
        membership: dict[str, list[str]] = {}
        for module_name, doctype_names in (data.get("modules") or {}).items():
            for doctype_name in doctype_names or []:
                membership.setdefault(doctype_name, []).append(module_name)

        doctypes = []
        for doctype_data in data.get("doctypes") or []:
            definition = DocTypeDefinition.model_validate(doctype_data)
            for module_name in membership.get(definition.name, []):
                if module_name not in definition.module:
                    definition.module.append(module_name)
            doctypes.append(definition)

        return CatalogFixture(
            name=info.get("name", default_name),
            description=info.get("description", ""),
            doctypes=doctypes,
            documents=data.get("documents") or {},
        )

    def validate_fixture(self, fixture: CatalogFixture) -> None:
        """Validate DocType names, field uniqueness and Link targets."""
        names = fixture.get_doctype_names()
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"DocType declared more than once: {sorted(duplicates)}")

        known = set(names)
        for doctype in fixture.doctypes:
            if not doctype.name.strip():
                raise ValueError("DocType with an empty name")

            fieldnames = doctype.get_field_names()
            repeated = {n for n in fieldnames if fieldnames.count(n) > 1}
            if repeated:
                raise ValueError(
                    f"DocType '{doctype.name}' repeats fieldnames: {sorted(repeated)}"
                )

            for field in doctype.get_link_fields():
                if field.options not in known:
                    raise ValueError(
                        f"Link field '{doctype.name}.{field.fieldname}' "
                        f"references unknown DocType: {field.options}"
                    )

            for field in doctype.fields:
                if field.fieldtype == FieldType.SELECT and not field.select_options:
                    logger.warning(
                        f"Select field '{doctype.name}.{field.fieldname}' has no options"
                    )

            if not doctype.module:
                logger.warning(f"DocType '{doctype.name}' belongs to no module")

        for doctype_name in fixture.documents:
            if doctype_name not in known:
                raise ValueError(f"Sample documents for unknown DocType: {doctype_name}")

        logger.info(
            f"Catalog '{fixture.name}' validated: "
            f"{len(fixture.doctypes)} doctypes, "
            f"{sum(len(d) for d in fixture.documents.values())} sample documents"
        )

    def list_available_fixtures(self) -> list[str]:
        """List all available fixture names."""
        return sorted(path.stem for path in self.schemas_dir.glob("*.yaml"))
