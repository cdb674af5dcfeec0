"""One-shot owned-record lookup (no live subscription)."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from worklens.domain.access import IdentityResolver, bindings_for_component, roles_for
from worklens.domain.aggregation.plan import SubscriptionPlanner
from worklens.domain.mapping import RecordMapper
from worklens.domain.model import IdentityComponent, MatcherKind
from worklens.domain.ports import QueryOperator, StoreQuery

if TYPE_CHECKING:
    from collections.abc import Iterable

    from worklens.domain.model import ActorIdentity, DomainEntity, EntityKind, RelationshipRole
    from worklens.domain.ports import DocumentStore, StoredDocument

log = getLogger(__name__)


async def fetch_owned_once(
    store: DocumentStore,
    actor: ActorIdentity,
    kind: EntityKind,
    *,
    planner: SubscriptionPlanner | None = None,
    resolver: IdentityResolver | None = None,
    mapper: RecordMapper | None = None,
) -> list[DomainEntity]:
    """Read the actor's records of ``kind`` once.

    Tries cheap id-rooted queries first, then the primary email alias, and only
    then reads the whole collection and filters it with the resolver (deep scan
    included).
    """

    collection = (planner or SubscriptionPlanner()).collection_for(kind)
    resolver = resolver or IdentityResolver()
    mapper = mapper or RecordMapper()
    roles = roles_for(kind)

    documents: list[StoredDocument] = []
    actor_id = actor.component(IdentityComponent.ID)
    if actor_id is not None:
        documents = await _read_all(store, _id_queries(collection, roles, actor_id))

    actor_email = actor.component(IdentityComponent.EMAIL)
    if not documents and actor_email is not None:
        email_bindings = [
            binding
            for binding in bindings_for_component(roles, IdentityComponent.EMAIL)
            if not binding.is_array
        ]
        if email_bindings:
            query = StoreQuery(collection, email_bindings[0].primary_alias, value=actor_email)
            documents = await store.get_once(query)

    if not documents:
        log.debug("Structured lookup found nothing for kind=%s; scanning %s", kind, collection)
        documents = [
            document
            for document in await store.get_once(StoreQuery(collection))
            if resolver.is_owned_by(actor, document.data, roles)
        ]

    entities: list[DomainEntity] = []
    for document in documents:
        entity = mapper.map(document.data, kind, store_id=document.doc_id)
        if entity is not None:
            entities.append(entity)
    log.info("Lookup kind=%s returned %d record(s)", kind, len(entities))
    return entities


def _id_queries(
    collection: str, roles: tuple[RelationshipRole, ...], actor_id: str
) -> list[StoreQuery]:
    queries: list[StoreQuery] = []
    bindings = bindings_for_component(roles, IdentityComponent.ID)
    for binding in bindings:
        if binding.matcher in (MatcherKind.EXACT, MatcherKind.CASE_INSENSITIVE_EXACT):
            queries.extend(
                StoreQuery(collection, alias, value=actor_id) for alias in binding.aliases
            )
    for binding in bindings:
        if binding.matcher is MatcherKind.ARRAY_CONTAINS:
            queries.extend(
                StoreQuery(collection, alias, QueryOperator.ARRAY_CONTAINS, actor_id)
                for alias in binding.aliases
            )
    return queries


async def _read_all(store: DocumentStore, queries: Iterable[StoreQuery]) -> list[StoredDocument]:
    seen: set[str] = set()
    documents: list[StoredDocument] = []
    for query in queries:
        for document in await store.get_once(query):
            if document.doc_id in seen:
                continue
            seen.add(document.doc_id)
            documents.append(document)
    return documents
