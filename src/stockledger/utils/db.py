"""Relational schema management for the ledger tables.

Only SQLAlchemy-backed providers have a schema to manage; the in-memory
provider used by the test suite is skipped. Besides the aggregate tables each
relational store carries the counter rows behind Goods Return Numbers.
"""

from protean.domain import Domain
from sqlalchemy import create_engine

from stockledger.purchasing.grn import sequence_metadata

RELATIONAL_PROVIDERS = ("sqlite", "postgresql")


def _register_models(domain: Domain, provider) -> None:
    """Force SQLAlchemy models into the provider's metadata.

    Models are built lazily when a repository's ``_dao`` is first accessed,
    so every aggregate, entity and projection stored in ``provider`` is
    touched once before ``create_all``/``drop_all`` runs.
    """
    registries = (
        domain.registry.aggregates,
        domain.registry.entities,
        domain.registry.projections,
    )
    for registry in registries:
        for _, record in registry.items():
            if record.cls.meta_.provider == provider.name:
                domain.repository_for(record.cls)._dao  # noqa: B018


def _relational_providers(domain: Domain):
    for _, provider in domain.providers.items():
        if provider.conn_info["provider"] in RELATIONAL_PROVIDERS:
            yield provider


def default_engine(domain: Domain, provider_name: str = "default"):
    """SQLAlchemy engine for a relational provider, or ``None`` for the in-memory one."""
    for provider in _relational_providers(domain):
        if provider.name == provider_name:
            return create_engine(provider.conn_info["database_uri"])
    return None


def setup_db(domain: Domain) -> list[str]:
    """Create the ledger tables. Returns the names of the providers touched."""
    touched = []
    with domain.domain_context():
        for provider in _relational_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            _register_models(domain, provider)
            provider._metadata.create_all(engine)
            sequence_metadata.create_all(engine)
            touched.append(provider.name)
    return touched


def drop_db(domain: Domain) -> list[str]:
    """Drop the ledger tables. Returns the names of the providers touched."""
    touched = []
    with domain.domain_context():
        for provider in _relational_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            _register_models(domain, provider)
            provider._metadata.drop_all(engine)
            sequence_metadata.drop_all(engine)
            touched.append(provider.name)
    return touched
