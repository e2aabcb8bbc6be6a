"""Database schema helpers.

Protean owns the tables of its aggregates; the stock ledger and the callback
claim store are SQLAlchemy Core tables registered on ``metadata`` below.
"""

from functools import lru_cache

from protean.domain import Domain
from sqlalchemy import Engine, MetaData, create_engine

# Tables for the stock ledger and the callback claim store register here.
metadata = MetaData()

_SQL_PROVIDERS = ("sqlite", "postgresql")


@lru_cache
def engine_for(database_uri: str) -> Engine:
    connect_args = {"check_same_thread": False} if database_uri.startswith("sqlite") else {}
    return create_engine(database_uri, connect_args=connect_args, pool_pre_ping=True)


def create_tables(database_uri: str) -> None:
    metadata.create_all(engine_for(database_uri))


def drop_tables(database_uri: str) -> None:
    metadata.drop_all(engine_for(database_uri))


def setup_domain_db(domain: Domain) -> None:
    """Create the tables of every aggregate stored in a SQL provider."""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in _SQL_PROVIDERS:
                engine = create_engine(provider.conn_info["database_uri"])

                for _, aggregate_record in domain.registry.aggregates.items():
                    if aggregate_record.cls.meta_.provider == provider.name:
                        domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

                for _, entity_record in domain.registry.entities.items():
                    if entity_record.cls.meta_.provider == provider.name:
                        domain.repository_for(entity_record.cls)._dao  # noqa: B018

                # Force DAO creation for outbox tables (registered as internal)
                if hasattr(domain, "_outbox_repos") and provider.name in domain._outbox_repos:
                    domain._outbox_repos[provider.name]._dao  # noqa: B018

                provider._metadata.create_all(engine)


def drop_domain_db(domain: Domain) -> None:
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in _SQL_PROVIDERS:
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)
