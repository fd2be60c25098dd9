"""Shared pytest fixtures and test helpers for fwdctl tests."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from fwdctl.config.settings import FwdSettings
from fwdctl.domain.ids import generate_id
from fwdctl.domain.models import BusinessClient, IndividualClient
from fwdctl.infrastructure.store import Store


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary workspace root with no config file in effect."""
    monkeypatch.delenv("FWDCTL_CONFIG", raising=False)
    return tmp_path


@pytest.fixture
def settings(workspace: Path) -> FwdSettings:
    return FwdSettings.from_cli(workspace_root=workspace)


@pytest.fixture
def store(settings: FwdSettings) -> Iterator[Store]:
    """Store on a fresh SQLite file inside the temp workspace."""
    s = Store(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_workspace(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp workspace so the CLI creates an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.  Tests that need the path can also request ``tmp_path``.
    """
    monkeypatch.chdir(workspace)


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------


def contact_payload(
    first_name: str = "Claire",
    last_name: str = "Martin",
    *,
    is_primary: bool = False,
    **overrides: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "first_name": first_name,
        "last_name": last_name,
        "contact_type": "primary" if is_primary else "other",
        "is_primary": is_primary,
    }
    payload.update(overrides)
    return payload


def individual_payload(
    email: str = "jean.dupont@example.com",
    *,
    first_name: str = "Jean",
    last_name: str = "Dupont",
    **overrides: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "client_type": "individual",
        "contact_info": {
            "email": email,
            "phone": "+33 1 23 45 67 89",
            "address": {"city": "Lyon", "postal_code": "69001", "country": "FR"},
        },
        "individual_info": {"first_name": first_name, "last_name": last_name},
    }
    payload.update(overrides)
    return payload


def business_payload(
    email: str = "contact@acme.example",
    *,
    company_name: str = "Acme Logistics",
    industry: str = "logistics",
    contacts: list[dict[str, Any]] | None = None,
    siret: str | None = None,
    country: str = "FR",
    **overrides: Any,
) -> dict[str, Any]:
    if contacts is None:
        contacts = [contact_payload(is_primary=True)]
    business_info: dict[str, Any] = {
        "company_name": company_name,
        "industry": industry,
        "contacts": contacts,
    }
    if siret is not None:
        business_info["legal_info"] = {"siret": siret}
    payload: dict[str, Any] = {
        "client_type": "business",
        "contact_info": {
            "email": email,
            "address": {"city": "Marseille", "postal_code": "13002", "country": country},
        },
        "business_info": business_info,
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def create_individual(
    store: Store, email: str = "jean.dupont@example.com", **kwargs: Any
) -> IndividualClient:
    """Create an individual client via ClientService."""
    from fwdctl.services.clients import ClientService

    client = ClientService(store).create(individual_payload(email, **kwargs))
    assert isinstance(client, IndividualClient)
    return client


def create_business(
    store: Store, email: str = "contact@acme.example", **kwargs: Any
) -> BusinessClient:
    """Create a business client via ClientService."""
    from fwdctl.services.clients import ClientService

    client = ClientService(store).create(business_payload(email, **kwargs))
    assert isinstance(client, BusinessClient)
    return client


def add_folder(
    store: Store,
    client_id: str,
    status: str = "active",
    *,
    updated_at: str = "2026-01-15T10:00:00+00:00",
) -> str:
    """Insert a folder row owned by *client_id* and return its id."""
    folder_id = generate_id("folder")
    store.folders.insert(
        {
            "id": folder_id,
            "client_id": client_id,
            "status": status,
            "reference": f"REF-{folder_id[-4:]}",
            "created_at": "2026-01-01T09:00:00+00:00",
            "updated_at": updated_at,
        }
    )
    return folder_id


def write_json(directory: Path, name: str, payload: Any) -> str:
    """Write *payload* as a JSON file for commands that take ``--file``."""
    path = directory / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)
