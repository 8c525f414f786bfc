"""Runtime helpers referenced by generated code."""

from typing import TypeVar

T = TypeVar("T")


def ensure_parent(element: T, method: str = "child") -> T:
    """Check that ``element`` can receive children before any are added.

    Generated chains call this ahead of their first child-adding call when
    ``CodegenConfig.assert_parent_capability`` is enabled.

    Args:
        element: Builder value about to receive children
        method: Name of the child-adding method the chain will call

    Returns:
        ``element`` unchanged

    Raises:
        TypeError: If ``element`` has no callable ``method``
    """
    if not callable(getattr(element, method, None)):
        raise TypeError(
            f"{type(element).__name__} cannot have children: "
            f"it has no '{method}' method"
        )
    return element
