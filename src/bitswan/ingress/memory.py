"""In-memory control plane with the proxy's config-tree semantics."""

import copy
import json
from collections import Counter
from typing import Any

from bitswan.ingress.base import ControlPlane
from bitswan.ingress.errors import IngressError, StatusError

_APPEND = "..."


class InMemoryControlPlane(ControlPlane):
    """Control plane backed by a local JSON tree.

    Mirrors the admin API contract used by this package: PUT replaces the
    addressed node (creating missing parents), POST to ``<list>/...``
    appends every element of the payload, ``/id/<id>`` addresses any object
    carrying that ``@id`` and writes that would duplicate an ``@id`` are
    rejected with status 400.
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        """Initialize the in-memory control plane.

        Args:
            config: Optional initial config tree.
        """
        self._root: dict[str, Any] = {"config": copy.deepcopy(config or {})}
        self._failures: dict[tuple[str, str], IngressError] = {}
        self.requests: list[tuple[str, str, Any]] = []

    @property
    def config(self) -> dict[str, Any]:
        """Get a copy of the full config tree."""
        return copy.deepcopy(self._root["config"])

    def inject_failure(self, method: str, path: str, error: IngressError) -> None:
        """Make every request with this method and path raise error."""
        self._failures[(method.upper(), path)] = error

    def clear_failures(self) -> None:
        """Remove all injected failures."""
        self._failures.clear()

    def send(self, method: str, path: str, payload: Any = None) -> bytes:
        method = method.upper()
        self.requests.append((method, path, copy.deepcopy(payload)))

        failure = self._failures.get((method, path))
        if failure is not None:
            raise failure

        keys = [part for part in path.strip("/").split("/") if part]
        if not keys:
            raise StatusError(400, method, path, "empty path")

        if keys[0] == "id":
            return self._send_by_id(method, path, keys[1:], payload)
        if keys[0] != "config":
            raise StatusError(404, method, path, "unknown endpoint")

        if method == "GET":
            return self._encode(self._resolve(self._root, keys, method, path))

        root = copy.deepcopy(self._root)
        if method == "PUT":
            self._put(root, keys, payload, path)
        elif method == "POST":
            self._post(root, keys, payload, path)
        elif method == "DELETE":
            try:
                parent = self._resolve(root, keys[:-1], method, path)
                self._remove(parent, keys[-1])
            except StatusError as e:
                if e.code == 404:
                    return b""
                raise
        else:
            raise StatusError(405, method, path, "method not allowed")

        self._commit(root, method, path)
        return b""

    def _send_by_id(
        self, method: str, path: str, keys: list[str], payload: Any
    ) -> bytes:
        if not keys:
            raise StatusError(400, method, path, "missing id")
        resource_id, rest = keys[0], keys[1:]

        root = copy.deepcopy(self._root)
        location = self._find_id(root["config"], resource_id)
        if location is None:
            if method == "DELETE":
                return b""
            raise StatusError(404, method, path, f"unknown object ID '{resource_id}'")
        parent, key = location

        if method == "GET":
            return self._encode(self._resolve(parent[key], rest, method, path))
        if method == "DELETE" and not rest:
            self._remove(parent, key)
        elif method == "PUT" and not rest:
            parent[key] = copy.deepcopy(payload)
        else:
            raise StatusError(405, method, path, "method not allowed")

        self._commit(root, method, path)
        return b""

    def _put(
        self, root: dict[str, Any], keys: list[str], payload: Any, path: str
    ) -> None:
        node: Any = root
        for key in keys[:-1]:
            if isinstance(node, dict):
                if node.get(key) is None:
                    node[key] = {}
                node = node[key]
            else:
                node = self._resolve(node, [key], "PUT", path)
        last = keys[-1]
        if isinstance(node, list):
            node[self._index(node, last, "PUT", path)] = copy.deepcopy(payload)
        else:
            node[last] = copy.deepcopy(payload)

    def _post(
        self, root: dict[str, Any], keys: list[str], payload: Any, path: str
    ) -> None:
        if keys[-1] == _APPEND:
            target = self._resolve(root, keys[:-1], "POST", path)
            if not isinstance(target, list) or not isinstance(payload, list):
                raise StatusError(400, "POST", path, "can only append array to array")
            target.extend(copy.deepcopy(payload))
            return

        parent = self._resolve(root, keys[:-1], "POST", path)
        last = keys[-1]
        if isinstance(parent, dict):
            current = parent.get(last)
            if isinstance(current, list):
                current.append(copy.deepcopy(payload))
            else:
                parent[last] = copy.deepcopy(payload)
        else:
            parent[self._index(parent, last, "POST", path)] = copy.deepcopy(payload)

    def _resolve(self, node: Any, keys: list[str], method: str, path: str) -> Any:
        for key in keys:
            if isinstance(node, dict):
                if key not in node:
                    raise StatusError(
                        404, method, path, f"invalid traversal path at: {key}"
                    )
                node = node[key]
            elif isinstance(node, list):
                node = node[self._index(node, key, method, path)]
            else:
                raise StatusError(
                    404, method, path, f"invalid traversal path at: {key}"
                )
        return node

    @staticmethod
    def _index(node: list[Any], key: str, method: str, path: str) -> int:
        try:
            idx = int(key)
        except ValueError:
            raise StatusError(
                400, method, path, f"invalid array index '{key}'"
            ) from None
        if not 0 <= idx < len(node):
            raise StatusError(404, method, path, f"array index out of bounds: {idx}")
        return idx

    def _remove(self, parent: Any, key: Any) -> None:
        if isinstance(parent, list):
            if not isinstance(key, int):
                key = self._index(parent, key, "DELETE", "")
            parent.pop(key)
        elif isinstance(parent, dict) and key in parent:
            del parent[key]
        else:
            raise StatusError(404, "DELETE", str(key), "not found")

    def _find_id(self, node: Any, resource_id: str) -> tuple[Any, Any] | None:
        if isinstance(node, dict):
            for key, value in node.items():
                if isinstance(value, dict) and value.get("@id") == resource_id:
                    return node, key
                found = self._find_id(value, resource_id)
                if found is not None:
                    return found
        elif isinstance(node, list):
            for idx, value in enumerate(node):
                if isinstance(value, dict) and value.get("@id") == resource_id:
                    return node, idx
                found = self._find_id(value, resource_id)
                if found is not None:
                    return found
        return None

    def _collect_ids(self, node: Any, ids: list[str]) -> list[str]:
        if isinstance(node, dict):
            if isinstance(node.get("@id"), str):
                ids.append(node["@id"])
            for value in node.values():
                self._collect_ids(value, ids)
        elif isinstance(node, list):
            for value in node:
                self._collect_ids(value, ids)
        return ids

    def _commit(self, root: dict[str, Any], method: str, path: str) -> None:
        counts = Counter(self._collect_ids(root["config"], []))
        duplicates = sorted(i for i, n in counts.items() if n > 1)
        if duplicates:
            message = f"indexing config: duplicate ID '{duplicates[0]}' found"
            raise StatusError(400, method, path, message)
        self._root = root

    @staticmethod
    def _encode(value: Any) -> bytes:
        return (json.dumps(value) + "\n").encode("utf-8")
