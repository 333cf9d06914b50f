"""Assemble the resolvers into an executable ``strawberry.Schema``."""

import strawberry

from quill_gql.errors import ErrorCodeExtension
from quill_gql.resolvers import mutation, query, subscription
from quill_gql.security import GraphQLSecurityConfig, build_security_extensions


@strawberry.type(description="Root query")
class Query:
    me = strawberry.field(resolver=query.me, description="The authenticated caller.")
    user = strawberry.field(resolver=query.user)
    users = strawberry.field(resolver=query.users)
    posts = strawberry.field(resolver=query.posts)
    my_posts = strawberry.field(resolver=query.my_posts)
    post = strawberry.field(resolver=query.post)
    comments = strawberry.field(resolver=query.comments)


@strawberry.type(description="Root mutation")
class Mutation:
    create_user = strawberry.mutation(resolver=mutation.create_user)
    login = strawberry.mutation(resolver=mutation.login)
    update_user = strawberry.mutation(resolver=mutation.update_user)
    delete_user = strawberry.mutation(resolver=mutation.delete_user)
    create_post = strawberry.mutation(resolver=mutation.create_post)
    update_post = strawberry.mutation(resolver=mutation.update_post)
    delete_post = strawberry.mutation(resolver=mutation.delete_post)
    create_comment = strawberry.mutation(resolver=mutation.create_comment)
    update_comment = strawberry.mutation(resolver=mutation.update_comment)
    delete_comment = strawberry.mutation(resolver=mutation.delete_comment)


@strawberry.type(description="Root subscription")
class Subscription:
    comment = strawberry.subscription(resolver=subscription.comment, description="Changes to one post's comments.")
    post = strawberry.subscription(resolver=subscription.post, description="Post lifecycle visible to the caller.")
    my_post = strawberry.subscription(resolver=subscription.my_post, description="The caller's newly visible posts.")


def build_schema(security_config: GraphQLSecurityConfig | None = None) -> strawberry.Schema:
    """Build the blog schema with error coding and security extensions.

    When *security_config* is ``None`` the defaults apply (introspection
    enabled, depth limit 8).
    """
    return strawberry.Schema(
        query=Query,
        mutation=Mutation,
        subscription=Subscription,
        extensions=[ErrorCodeExtension, *build_security_extensions(security_config)],
    )


def build_schema_sdl() -> str:
    """Return the schema as SDL text."""
    return str(build_schema())
