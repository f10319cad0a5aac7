# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Errors raised while building, decoding or extending a workflow map."""

from typing import Any, Optional


class WorkflowMapError(Exception):
    """Base class for every workflow map error."""


class LocatedError(WorkflowMapError):
    """An error that can point at a key-path and source line of a payload.

    ``path`` is the key-path of the offending value (``collect.process[0]``
    style). ``line`` is the 1-based source line when it is known.
    """

    def __init__(self, message: str, path: Optional[str] = None, line: Optional[int] = None):
        self.message = message
        self.path = path
        self.line = line
        super().__init__(str(self))

    def __str__(self) -> str:
        msg = self.message
        if self.path:
            msg = f"{self.path}: {msg}"
        if self.line is not None:
            msg = f"line {self.line}: {msg}"
        return msg


class InvalidPayloadKind(WorkflowMapError, TypeError):
    def __init__(self, payload: Any):
        self.kind = type(payload).__name__
        super().__init__(f"Payload to convert must be str or bytes, got {self.kind}")


class DeserializationError(LocatedError, ValueError):
    """Malformed JSON/YAML content, or content with the wrong wire shape."""


class SerializationError(WorkflowMapError, ValueError):
    """A workflow map holds a config value the target format cannot encode."""


class UnsupportedChildType(WorkflowMapError, TypeError):
    def __init__(self, child: Any, parent: str):
        self.kind = type(child).__name__
        self.parent = parent
        super().__init__(
            f"cannot add workflow node type ({self.kind}) to {parent} node as child"
        )


class InvalidNamespaceFormat(LocatedError, ValueError):
    def __init__(self, namespace: Any, path: Optional[str] = None, line: Optional[int] = None):
        self.namespace = namespace
        super().__init__(
            f"metric namespace {namespace!r} is not a slash-delimited path like '/one/two/three'",
            path,
            line,
        )
