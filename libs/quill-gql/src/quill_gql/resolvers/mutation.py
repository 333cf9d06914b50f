"""Root mutation resolvers: thin adapters over the MutationExecutor."""

import strawberry
from strawberry.types import Info

from quill_gql.types import (
    AuthPayload,
    Comment,
    CreateCommentInput,
    CreatePostInput,
    CreateUserInput,
    LoginInput,
    Post,
    UpdateCommentInput,
    UpdatePostInput,
    UpdateUserInput,
    User,
)


async def create_user(info: Info, data: CreateUserInput) -> AuthPayload:
    session = await info.context.executor.create_user(name=data.name, email=data.email, password=data.password)
    return AuthPayload.from_session(session)


async def login(info: Info, data: LoginInput) -> AuthPayload:
    session = await info.context.executor.login(email=data.email, password=data.password)
    return AuthPayload.from_session(session)


async def update_user(info: Info, data: UpdateUserInput) -> User:
    row = await info.context.executor.update_user(
        info.context.identity(), name=data.name, email=data.email, password=data.password
    )
    return User.from_row(row)


async def delete_user(info: Info) -> User:
    row = await info.context.executor.delete_user(info.context.identity())
    return User.from_row(row)


async def create_post(info: Info, data: CreatePostInput) -> Post:
    row = await info.context.executor.create_post(
        info.context.identity(), title=data.title, body=data.body, published=data.published
    )
    return Post.from_row(row)


async def update_post(info: Info, id: strawberry.ID, data: UpdatePostInput) -> Post:
    row = await info.context.executor.update_post(
        info.context.identity(), id, title=data.title, body=data.body, published=data.published
    )
    return Post.from_row(row)


async def delete_post(info: Info, id: strawberry.ID) -> Post:
    row = await info.context.executor.delete_post(info.context.identity(), id)
    return Post.from_row(row)


async def create_comment(info: Info, data: CreateCommentInput) -> Comment:
    row = await info.context.executor.create_comment(info.context.identity(), post_id=data.post_id, text=data.text)
    return Comment.from_row(row)


async def update_comment(info: Info, id: strawberry.ID, data: UpdateCommentInput) -> Comment:
    row = await info.context.executor.update_comment(info.context.identity(), id, text=data.text)
    return Comment.from_row(row)


async def delete_comment(info: Info, id: strawberry.ID) -> Comment:
    row = await info.context.executor.delete_comment(info.context.identity(), id)
    return Comment.from_row(row)
