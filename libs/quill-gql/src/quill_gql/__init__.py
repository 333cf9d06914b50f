"""quill-gql: GraphQL schema, topic bus, mutation executor and subscription router."""

from quill_gql.context import QuillServices, RequestContext
from quill_gql.errors import ErrorCodeExtension, NotFound, ValidationFailed
from quill_gql.event_bus import ChangeType, Envelope, Subscription, TopicBus
from quill_gql.events import derive_post_event
from quill_gql.executor import MutationExecutor
from quill_gql.router import SubscriptionPipeline, SubscriptionRouter
from quill_gql.schema import build_schema, build_schema_sdl
from quill_gql.security import GraphQLSecurityConfig

__all__ = [
    "ChangeType",
    "Envelope",
    "ErrorCodeExtension",
    "GraphQLSecurityConfig",
    "MutationExecutor",
    "NotFound",
    "QuillServices",
    "RequestContext",
    "Subscription",
    "SubscriptionPipeline",
    "SubscriptionRouter",
    "TopicBus",
    "ValidationFailed",
    "build_schema",
    "build_schema_sdl",
    "derive_post_event",
]
