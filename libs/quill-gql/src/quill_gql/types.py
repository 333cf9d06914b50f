"""Strawberry object, input and payload types."""

from datetime import datetime
from typing import Any, Optional

import strawberry
from strawberry.types import Info

from quill_gql.errors import NotFound
from quill_gql.event_bus import ChangeType, Envelope
from quill_gql.validation import validate_page

MutationType = strawberry.enum(
    ChangeType,
    name="MutationType",
    description="Kind of change a subscriber is told about.",
)


@strawberry.type
class User:
    id: strawberry.ID
    name: str
    created_at: datetime
    updated_at: datetime
    stored_email: strawberry.Private[str]

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "User":
        return cls(
            id=strawberry.ID(row["id"]),
            name=row["name"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            stored_email=row["email"],
        )

    @strawberry.field(description="Only visible to the user themselves.")
    def email(self, info: Info) -> Optional[str]:
        if info.context.identity(require_auth=False) == self.id:
            return self.stored_email
        return None

    @strawberry.field(description="Published posts, plus drafts when viewed by their author.")
    async def posts(
        self,
        info: Info,
        first: Optional[int] = None,
        skip: Optional[int] = None,
        after: Optional[str] = None,
    ) -> list["Post"]:
        page = validate_page(first, skip, after)
        filters: dict[str, Any] = {"author_id": self.id}
        if info.context.identity(require_auth=False) != self.id:
            filters["published"] = True
        rows = await info.context.store.posts.find_many(filters, page.first, offset=page.skip, after=page.after)
        return [Post.from_row(r) for r in rows]

    @strawberry.field(description="Comments by this user on posts the viewer can see.")
    async def comments(
        self,
        info: Info,
        first: Optional[int] = None,
        skip: Optional[int] = None,
        after: Optional[str] = None,
    ) -> list["Comment"]:
        page = validate_page(first, skip, after)
        store = info.context.store
        rows = await store.comments.find_many(
            {"author_id": self.id},
            page.first,
            offset=page.skip,
            after=page.after,
            where=[store.comments_visible_to(info.context.identity(require_auth=False))],
        )
        return [Comment.from_row(r) for r in rows]


@strawberry.type
class Post:
    id: strawberry.ID
    title: str
    body: str
    published: bool
    created_at: datetime
    updated_at: datetime
    author_id: strawberry.Private[str]

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Post":
        return cls(
            id=strawberry.ID(row["id"]),
            title=row["title"],
            body=row["body"],
            published=row["published"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            author_id=row["author_id"],
        )

    @strawberry.field
    async def author(self, info: Info) -> User:
        row = await info.context.store.users.find_by_id(self.author_id)
        if row is None:
            raise NotFound("User")
        return User.from_row(row)

    @strawberry.field
    async def comments(
        self,
        info: Info,
        first: Optional[int] = None,
        skip: Optional[int] = None,
        after: Optional[str] = None,
    ) -> list["Comment"]:
        page = validate_page(first, skip, after)
        rows = await info.context.store.comments.find_many(
            {"post_id": self.id}, page.first, offset=page.skip, after=page.after
        )
        return [Comment.from_row(r) for r in rows]


@strawberry.type
class Comment:
    id: strawberry.ID
    text: str
    created_at: datetime
    updated_at: datetime
    author_id: strawberry.Private[str]
    post_id: strawberry.Private[str]

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Comment":
        return cls(
            id=strawberry.ID(row["id"]),
            text=row["text"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            author_id=row["author_id"],
            post_id=row["post_id"],
        )

    @strawberry.field
    async def author(self, info: Info) -> User:
        row = await info.context.store.users.find_by_id(self.author_id)
        if row is None:
            raise NotFound("User")
        return User.from_row(row)

    @strawberry.field
    async def post(self, info: Info) -> "Post":
        row = await info.context.store.posts.find_by_id(self.post_id)
        if row is None:
            raise NotFound("Post")
        return Post.from_row(row)


@strawberry.type
class AuthPayload:
    token: str
    user: User

    @classmethod
    def from_session(cls, session: dict[str, Any]) -> "AuthPayload":
        return cls(token=session["token"], user=User.from_row(session["user"]))


@strawberry.type
class PostSubscriptionPayload:
    mutation: MutationType
    data: Post

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "PostSubscriptionPayload":
        return cls(mutation=envelope.kind, data=Post.from_row(envelope.resource))


@strawberry.type
class CommentSubscriptionPayload:
    mutation: MutationType
    data: Comment

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "CommentSubscriptionPayload":
        return cls(mutation=envelope.kind, data=Comment.from_row(envelope.resource))


@strawberry.input
class CreateUserInput:
    name: str
    email: str
    password: str


@strawberry.input
class LoginInput:
    email: str
    password: str


@strawberry.input
class UpdateUserInput:
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


@strawberry.input
class CreatePostInput:
    title: str
    body: str
    published: bool = False


@strawberry.input
class UpdatePostInput:
    title: Optional[str] = None
    body: Optional[str] = None
    published: Optional[bool] = None


@strawberry.input
class CreateCommentInput:
    text: str
    post_id: strawberry.ID


@strawberry.input
class UpdateCommentInput:
    text: str
