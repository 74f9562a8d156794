"""Integration tests for validating SQLAlchemy declarative models."""

from typing import Optional

import pytest
from sqlalchemy import Column, ForeignKey, String, Table, create_engine, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, attribute_keyed_dict, mapped_column, relationship

from modelvalidate.integrations.sqlalchemy import SQLAlchemyValidatable, describe_relationship
from modelvalidate.models import RelationKind


class Base(DeclarativeBase):
    pass


post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", ForeignKey("posts.id"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id"), primary_key=True),
)


class Author(SQLAlchemyValidatable, Base):
    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(50))

    posts: Mapped[list["Post"]] = relationship(back_populates="author")
    profile: Mapped[Optional["Profile"]] = relationship(back_populates="author")

    def get_validation_rules(self):
        return {"name": ["required", "max:50"]}


class Profile(SQLAlchemyValidatable, Base):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(primary_key=True)
    author_id: Mapped[Optional[int]] = mapped_column(ForeignKey("authors.id"), unique=True)
    bio: Mapped[Optional[str]]

    author: Mapped[Optional[Author]] = relationship(back_populates="profile")

    def get_validation_rules(self):
        return {"bio": ["required"], "author_id": ["required", "integer"]}


class Tag(SQLAlchemyValidatable, Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(primary_key=True)
    label: Mapped[Optional[str]]

    def get_validation_rules(self):
        return {"label": ["required"]}


class Post(SQLAlchemyValidatable, Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[Optional[str]]
    author_id: Mapped[Optional[int]] = mapped_column(ForeignKey("authors.id"))

    author: Mapped[Optional[Author]] = relationship(back_populates="posts")
    tags: Mapped[list[Tag]] = relationship(secondary=post_tags)

    def get_validation_rules(self):
        return {
            "title": ["required"],
            "author_id": ["required", "integer"],
        }


class Item(SQLAlchemyValidatable, Base):
    __tablename__ = "items"

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("owners.id"))
    code: Mapped[str] = mapped_column(String(10))
    label: Mapped[Optional[str]]

    def get_validation_rules(self):
        return {"label": ["required"]}


class Owner(SQLAlchemyValidatable, Base):
    __tablename__ = "owners"

    id: Mapped[int] = mapped_column(primary_key=True)

    items: Mapped[dict[str, Item]] = relationship(collection_class=attribute_keyed_dict("code"))

    def get_validation_rules(self):
        return {}


@pytest.fixture
def session():
    """In-memory database session."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine, expire_on_commit=False) as session:
        yield session
    engine.dispose()


def relationship_of(model, name):
    mapper = inspect(model)
    return describe_relationship(mapper, mapper.relationships[name])


class TestDescribeRelationship:
    """Test mapping SQLAlchemy relationships to relation kinds."""

    def test_many_to_one(self):
        descriptor = relationship_of(Post, "author")
        assert descriptor.kind is RelationKind.TO_ONE_OWNING
        assert descriptor.foreign_key == "author_id"
        assert descriptor.owner_key == "id"
        assert descriptor.related is Author

    def test_one_to_many(self):
        descriptor = relationship_of(Author, "posts")
        assert descriptor.kind is RelationKind.TO_MANY_OWNED
        assert descriptor.foreign_key == "author_id"
        assert descriptor.owner_key == "id"

    def test_one_to_one(self):
        descriptor = relationship_of(Author, "profile")
        assert descriptor.kind is RelationKind.TO_ONE_OWNED
        assert descriptor.foreign_key == "author_id"

    def test_many_to_many(self):
        descriptor = relationship_of(Post, "tags")
        assert descriptor.kind is RelationKind.TO_MANY_THROUGH_JOIN
        assert descriptor.foreign_key is None
        assert descriptor.related is Tag


class TestSQLAlchemyValidatable:
    """Test validation of mapped instances."""

    def test_column_attributes(self):
        """Test attribute access through the mapper."""
        post = Post(title="Hello")
        assert post.get_attributes() == {"id": None, "title": "Hello", "author_id": None}
        assert post.get_key_name() == "id"
        assert post.is_persisted() is False

    def test_unloaded_relations_are_not_followed(self):
        """Test that a fresh instance has no loaded relations."""
        post = Post(title="Hello")
        assert post.get_loaded_relations() == []
        assert post.validate() is False
        assert post.get_errors().keys() == ["author_id"]

    def test_new_owner_sets_sentinel(self):
        """Test a post with an unsaved author."""
        post = Post(title="Hello")
        post.author = Author()

        assert post.validate() is False
        assert post.get_errors().keys() == ["author.name"]
        assert post.author_id == -1

    def test_persisted_owner_key(self, session):
        """Test that a stored author's key is copied to the post."""
        author = Author(name="Ada")
        session.add(author)
        session.commit()

        post = Post(title="Hello")
        post.author = author

        assert author.is_persisted() is True
        assert post.validate() is True
        assert post.author_id == author.id

    def test_persisted_record_uses_update_scenario(self, session):
        """Test scenario detection from instance state."""
        author = Author(name="Ada")
        assert author.resolve_default_scenario() == "insert"

        session.add(author)
        session.commit()
        assert author.resolve_default_scenario() == "update"

    def test_has_many_paths(self):
        """Test index paths and child key backfill for collections."""
        author = Author(id=5, name="Ada")
        author.posts = [Post(title="first"), Post()]

        assert author.validate() is False
        assert author.get_errors().keys() == ["posts[1].title"]

    def test_has_one_backfill(self, session):
        """Test that an owned child receives the stored parent's key."""
        author = Author(name="Ada")
        session.add(author)
        session.commit()

        profile = Profile(bio="hello")
        author.profile = profile

        assert author.validate() is True
        assert profile.author_id == author.id

    def test_relation_allow_list(self):
        """Test following only named relationships."""
        author = Author(id=5, name="Ada")
        author.profile = Profile()
        author.posts = [Post()]
        author.set_validate_relations(["posts"])

        assert author.validate() is False
        assert author.get_errors().keys() == ["posts[0].title"]

    def test_many_to_many(self):
        """Test collections behind a join table."""
        post = Post(title="Hello", author_id=1)
        post.tags = [Tag(label="news"), Tag()]

        assert post.validate() is False
        assert post.get_errors().keys() == ["tags[1].label"]

    def test_is_required(self):
        assert Author().is_required("name") is True
        assert Post().is_required("id") is False

    def test_keyed_collection(self):
        """Test a dictionary collection validated through its values."""
        owner = Owner(id=1)
        owner.items["a"] = Item(code="a", label="first")
        owner.items["b"] = Item(code="b")

        assert relationship_of(Owner, "items").kind is RelationKind.TO_MANY_OWNED
        assert owner.validate() is False
        assert owner.get_errors().keys() == ["items[1].label"]
        assert owner.items["b"].owner_id == 1
