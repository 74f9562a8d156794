"""Tests for the error bag."""

from modelvalidate.exceptions import ModelValidationError
from modelvalidate.validation.errors import ErrorBag


class TestErrorBag:
    """Test ErrorBag behaviour."""

    def test_empty_bag(self):
        """Test a fresh bag."""
        bag = ErrorBag()
        assert bag.is_empty()
        assert bag.count() == 0
        assert len(bag) == 0
        assert bag.all() == []
        assert bag.first("name") is None
        assert bag.get("name") == []

    def test_add_single_and_many(self):
        """Test adding one message and a list of messages."""
        bag = ErrorBag()
        bag.add("name", "first")
        bag.add("name", ["second", "third"])

        assert bag.get("name") == ["first", "second", "third"]
        assert bag.first("name") == "first"
        assert bag.count() == 3

    def test_merge_appends(self):
        """Test that merging never drops existing messages."""
        bag = ErrorBag({"name": ["a"], "id": "b"})
        bag.merge(ErrorBag({"name": ["c"], "position": ["d"]}))

        assert bag.messages() == {"name": ["a", "c"], "id": ["b"], "position": ["d"]}

    def test_merge_keeps_key_order(self):
        """Test first-insertion key order."""
        bag = ErrorBag({"b": ["1"]})
        bag.merge({"a": ["2"], "b": ["3"]})
        assert bag.keys() == ["b", "a"]
        assert bag.all() == ["1", "3", "2"]

    def test_merge_skips_empty_values(self):
        """Test that empty message lists do not create keys."""
        bag = ErrorBag({"name": []})
        assert bag.keys() == []
        assert not bag.has("name")

    def test_flush(self):
        """Test removing everything."""
        bag = ErrorBag({"name": ["a"]})
        assert bag.flush().is_empty()

    def test_remove_leaves_no_phantom_keys(self):
        """Test that removed keys disappear entirely."""
        bag = ErrorBag({"name": ["a"], "id": ["b"]})
        bag.remove("name")

        assert "name" not in bag
        assert bag.keys() == ["id"]
        assert bag.count() == 1

    def test_remove_missing_key(self):
        """Test removing an unknown key."""
        bag = ErrorBag({"id": ["b"]})
        bag.remove("name")
        assert bag == {"id": ["b"]}

    def test_get_returns_copy(self):
        """Test that callers cannot mutate the bag through get."""
        bag = ErrorBag({"name": ["a"]})
        bag.get("name").append("b")
        bag.messages()["name"].append("c")
        assert bag.get("name") == ["a"]

    def test_iteration_and_equality(self):
        """Test iteration order and comparisons."""
        bag = ErrorBag({"name": ["a"], "id": ["b"]})
        assert list(bag) == [("name", ["a"]), ("id", ["b"])]
        assert bag == ErrorBag({"name": ["a"], "id": ["b"]})
        assert bag != ErrorBag({"name": ["a"]})

    def test_to_dict(self):
        """Test JSON-ready output."""
        bag = ErrorBag({"author.name": ["The name field is required."]})
        assert bag.to_dict() == {
            "count": 1,
            "errors": {"author.name": ["The name field is required."]},
        }


class TestModelValidationError:
    """Test the raised validation failure."""

    def test_message_lists_fields(self):
        """Test the formatted message."""
        error = ModelValidationError({"name": ["required", "short"], "id": ["bad"]})
        assert str(error) == "name: required; short; id: bad"
        assert isinstance(error.errors, ErrorBag)

    def test_empty_errors(self):
        """Test the message without details."""
        assert str(ModelValidationError(ErrorBag())) == "Validation failed"
