"""Read-only root query resolvers.

Drafts are only ever returned to their author; everything else sees
published posts and the comments on them.
"""

from typing import Optional

import strawberry
from strawberry.types import Info

from quill_gql.errors import NotFound
from quill_gql.types import Comment, Post, User
from quill_gql.validation import validate_page


async def me(info: Info) -> Optional[User]:
    identity = info.context.identity()
    row = await info.context.store.users.find_by_id(identity)
    if row is None:
        raise NotFound("User")
    return User.from_row(row)


async def user(info: Info, id: strawberry.ID) -> Optional[User]:
    row = await info.context.store.users.find_by_id(id)
    if row is None:
        raise NotFound("User")
    return User.from_row(row)


async def users(
    info: Info,
    query: Optional[str] = None,
    first: Optional[int] = None,
    skip: Optional[int] = None,
    after: Optional[str] = None,
) -> list[User]:
    """Users by name; *query* matches part of a name or a whole email."""
    page = validate_page(first, skip, after)
    rows = await info.context.store.users.find_many(
        None, page.first, offset=page.skip, search=query, after=page.after
    )
    return [User.from_row(r) for r in rows]


async def posts(
    info: Info,
    query: Optional[str] = None,
    first: Optional[int] = None,
    skip: Optional[int] = None,
    after: Optional[str] = None,
) -> list[Post]:
    """Published posts, most recently updated first."""
    page = validate_page(first, skip, after)
    rows = await info.context.store.posts.find_many(
        {"published": True}, page.first, offset=page.skip, search=query, after=page.after
    )
    return [Post.from_row(r) for r in rows]


async def my_posts(
    info: Info,
    query: Optional[str] = None,
    first: Optional[int] = None,
    skip: Optional[int] = None,
    after: Optional[str] = None,
) -> list[Post]:
    """The caller's posts, drafts included."""
    identity = info.context.identity()
    page = validate_page(first, skip, after)
    rows = await info.context.store.posts.find_many(
        {"author_id": identity}, page.first, offset=page.skip, search=query, after=page.after
    )
    return [Post.from_row(r) for r in rows]


async def post(info: Info, id: strawberry.ID) -> Optional[Post]:
    row = await info.context.store.posts.find_by_id(id)
    if row is None:
        raise NotFound("Post")
    if not row["published"] and row["author_id"] != info.context.identity(require_auth=False):
        raise NotFound("Post")
    return Post.from_row(row)


async def comments(
    info: Info,
    query: Optional[str] = None,
    first: Optional[int] = None,
    skip: Optional[int] = None,
    after: Optional[str] = None,
) -> list[Comment]:
    """Comments on posts the caller can see, most recently updated first."""
    page = validate_page(first, skip, after)
    store = info.context.store
    rows = await store.comments.find_many(
        None,
        page.first,
        offset=page.skip,
        search=query,
        after=page.after,
        where=[store.comments_visible_to(info.context.identity(require_auth=False))],
    )
    return [Comment.from_row(r) for r in rows]
