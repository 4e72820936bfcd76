import pytest

from layout_toolkit.core.models import Node
from layout_toolkit.core.services import OperationResult


@pytest.fixture
def nested_chain():
    """root(1) -> A(2) -> B(3)."""
    return Node(id="1", type="div", children=(
        Node(id="2", type="div", children=(Node(id="3", type="div"),)),
    ))


@pytest.fixture
def assert_result_shape():
    def check(res, success=None, message_substr=None):
        assert isinstance(res, OperationResult)
        assert isinstance(res.success, bool)
        assert isinstance(res.message, str)
        if success is not None:
            assert res.success is success
        if message_substr:
            assert message_substr.lower() in res.message.lower()
        if res.details is not None:
            assert isinstance(res.details, dict)
    return check
