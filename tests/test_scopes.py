"""
Tests for query scopes and the default scope.
"""

from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, event, select
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from discard_toolkit.soft_delete import (
    DiscardError,
    DiscardMixin,
    DiscardSettings,
    discarded,
    discarded_by,
    kept,
    register_default_scope,
    undiscarded,
    with_discarded,
)

Base = declarative_base()


class Author(Base):
    """Plain model without discard support."""

    __tablename__ = "authors"

    id = Column(Integer, primary_key=True)
    name = Column(String(100))

    posts = relationship("Post", back_populates="author", order_by="Post.id")


class Post(Base, DiscardMixin):
    """Post with the default marker."""

    __tablename__ = "posts"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True)
    title = Column(String(100))
    author_id = Column(Integer, ForeignKey("authors.id"))
    discarded_at = Column(DateTime, nullable=True)

    author = relationship("Author", back_populates="posts")


class Document(Base, DiscardMixin):
    """Document recording who discarded it."""

    __tablename__ = "documents"
    __allow_unmapped__ = True
    __discard__ = DiscardSettings(discarded_by_field="discarded_by")

    id = Column(Integer, primary_key=True)
    name = Column(String(100))
    discarded_at = Column(DateTime, nullable=True)
    discarded_by = Column(Integer, nullable=True)


@pytest.fixture
def db_session(sqlite_engine):
    """Create an SQLite database session for testing."""
    Base.metadata.create_all(sqlite_engine)

    Session = sessionmaker(bind=sqlite_engine)
    session = Session()

    yield session

    session.close()


@pytest.fixture
def posts(db_session):
    """One kept and one discarded post by the same author."""
    author = Author(name="Ada")
    kept_post = Post(title="Kept", author=author)
    discarded_post = Post(
        title="Discarded", author=author, discarded_at=datetime(2019, 3, 1)
    )
    db_session.add_all([author, kept_post, discarded_post])
    db_session.commit()
    return SimpleNamespace(author=author, kept=kept_post, discarded=discarded_post)


class TestScopes:
    """Kept, undiscarded and discarded views of a table."""

    def test_kept(self, db_session, posts):
        """Test kept() selects only kept records."""
        assert db_session.scalars(Post.kept()).all() == [posts.kept]

    def test_undiscarded_matches_kept(self, db_session, posts):
        """Test undiscarded() is the same set as kept()."""
        assert db_session.scalars(Post.undiscarded()).all() == [posts.kept]

    def test_discarded(self, db_session, posts):
        """Test discarded() selects only discarded records."""
        assert db_session.scalars(Post.discarded()).all() == [posts.discarded]

    def test_with_discarded(self, db_session, posts):
        """Test with_discarded() selects everything."""
        result = db_session.scalars(Post.with_discarded().order_by(Post.id)).all()
        assert result == [posts.kept, posts.discarded]

    def test_partition(self, db_session, posts):
        """Test every record is either kept or discarded, never both."""
        null_marker = select(Post.id).where(Post.discarded_at.is_(None))
        kept_ids = set(db_session.scalars(null_marker))
        kept_records = {p.id for p in db_session.scalars(Post.kept())}
        discarded_records = {p.id for p in db_session.scalars(Post.discarded())}
        all_records = {p.id for p in db_session.scalars(Post.with_discarded())}

        assert kept_records == kept_ids
        assert kept_records.isdisjoint(discarded_records)
        assert kept_records | discarded_records == all_records

    def test_scopes_follow_transitions(self, db_session, posts):
        """Test a discarded record moves between scopes."""
        posts.kept.discard()

        assert db_session.scalars(Post.kept()).all() == []
        assert len(db_session.scalars(Post.discarded()).all()) == 2


class TestComposableScopes:
    """Scopes applied to caller-built statements."""

    def test_chains_with_where(self, db_session, posts):
        """Test scopes combine with ordinary filters."""
        statement = kept(select(Post).where(Post.title.like("K%")))
        assert db_session.scalars(statement).all() == [posts.kept]

        statement = discarded(select(Post).where(Post.title.like("K%")))
        assert db_session.scalars(statement).all() == []

    def test_model_inferred_from_statement(self, db_session, posts):
        """Test scopes find the model in the statement."""
        assert db_session.scalars(undiscarded(select(Post))).all() == [posts.kept]

    def test_explicit_model(self, db_session, posts):
        """Test scopes accept the model explicitly for join queries."""
        statement = discarded(select(Author).join(Author.posts), Post)
        assert db_session.scalars(statement).all() == [posts.author]

    def test_non_discardable_statement(self):
        """Test scoping a statement without a discardable model fails."""
        with pytest.raises(DiscardError, match="discardable model"):
            kept(select(Author))


class TestDiscardedBy:
    """Filtering by the actor who discarded a record."""

    def test_discarded_by_actor(self, db_session):
        """Test records are matched by the actor's id."""
        alice = SimpleNamespace(id=1)
        bob = SimpleNamespace(id=2)
        first = Document(name="first")
        second = Document(name="second")
        db_session.add_all([first, second])
        db_session.commit()

        first.discard(actor=alice)
        second.discard(actor=bob)

        by_alice = db_session.scalars(Document.discarded_by_actor(alice)).all()
        assert by_alice == [first]
        assert db_session.scalars(Document.discarded_by_actor(2)).all() == [second]
        assert db_session.scalars(Document.discarded_by_actor(3)).all() == []

    def test_column_named_discarded_by_keeps_scope(self):
        """Test a discarded_by column leaves the class scope callable."""
        assert isinstance(Document.__table__.c.discarded_by, Column)
        assert callable(Document.discarded_by_actor)
        assert "discarded_by" in str(Document.discarded_by_actor(1))

    def test_field_named_after_mixin_method(self):
        """Test a discard field may not reuse a mixin method name."""
        LocalBase = declarative_base()

        with pytest.raises(DiscardError, match="cannot use kept"):

            class Shadowed(LocalBase, DiscardMixin):
                __tablename__ = "shadowed"
                __allow_unmapped__ = True
                __discard__ = DiscardSettings(discarded_by_field="kept")

                id = Column(Integer, primary_key=True)
                discarded_at = Column(DateTime, nullable=True)
                kept = Column(Integer, nullable=True)

    def test_module_function(self, db_session):
        """Test the statement-level function."""
        doc = Document(name="doc")
        db_session.add(doc)
        db_session.commit()
        doc.discard(actor=5)

        statement = discarded_by(select(Document), 5)
        assert db_session.scalars(statement).all() == [doc]

    def test_not_configured(self):
        """Test models without a discarded-by field reject the scope."""
        with pytest.raises(DiscardError, match="does not record who discarded it"):
            Post.discarded_by_actor(1)


class TestDefaultScope:
    """Hiding discarded rows from every query run through a session."""

    @pytest.fixture
    def scoped_session(self, db_session, posts):
        listener = register_default_scope(db_session, Post)
        db_session.expire_all()
        yield db_session
        event.remove(db_session, "do_orm_execute", listener)

    def test_plain_select_hides_discarded(self, scoped_session, posts):
        """Test a plain select returns only kept records."""
        assert scoped_session.scalars(select(Post)).all() == [posts.kept]

    def test_with_discarded_lifts_default(self, scoped_session, posts):
        """Test with_discarded() shows every record again."""
        result = scoped_session.scalars(Post.with_discarded().order_by(Post.id)).all()
        assert result == [posts.kept, posts.discarded]

    def test_discarded_alone_is_empty(self, scoped_session, posts):
        """Test discarded() keeps the default filter, so nothing matches."""
        assert scoped_session.scalars(Post.discarded()).all() == []

    def test_with_discarded_then_discarded(self, scoped_session, posts):
        """Test discarded rows are listed once the default is lifted."""
        assert scoped_session.scalars(with_discarded(Post.discarded())).all() == [
            posts.discarded
        ]
        assert scoped_session.scalars(discarded(Post.with_discarded())).all() == [
            posts.discarded
        ]

    def test_relationship_loads_unaffected(self, scoped_session, posts):
        """Test lazy loads of relationships are not filtered."""
        author = scoped_session.scalars(select(Author)).one()
        assert [p.title for p in author.posts] == ["Kept", "Discarded"]

    def test_other_models_unaffected(self, scoped_session):
        """Test only the registered models are scoped."""
        doc = Document(name="doc", discarded_at=datetime(2020, 1, 1))
        scoped_session.add(doc)
        scoped_session.commit()

        assert scoped_session.scalars(select(Document)).all() == [doc]

    def test_listener_removed(self, db_session, posts):
        """Test removing the listener restores unscoped queries."""
        listener = register_default_scope(db_session, Post)
        event.remove(db_session, "do_orm_execute", listener)

        assert len(db_session.scalars(select(Post)).all()) == 2
