"""
Secure-computation engine contract and registry.

WARNING: the only bundled engine ("mock") provides no input privacy. It is
for tests and local demos; register a real two-party engine before running
private checks against an untrusted counterpart.
"""

from __future__ import annotations

import importlib
from typing import Any, Callable, Dict, Mapping, Protocol, runtime_checkable

from ..feature_flags import get_engine_name

# send(to_party, data) is synchronous; the driver queues the bytes.
SendCallback = Callable[[str, bytes], None]

ENGINE_REGISTRY: Dict[str, str] = {
    "mock": "credproof.session.mock_engine.MockPredicateEngine",
}


@runtime_checkable
class EngineSession(Protocol):
    def handle_message(self, from_party: str, data: bytes) -> None:
        ...

    async def output(self) -> Mapping[str, Any]:
        """Suspend until the computation finishes; raises on engine failure."""
        ...


@runtime_checkable
class ProtocolEngine(Protocol):
    # Approximate bytes exchanged per session; drives progress reporting only.
    expected_total_bytes: int

    def join(self, party: str, inputs: Mapping[str, Any], send: SendCallback) -> EngineSession:
        ...


def _format_valid_options() -> str:
    return ", ".join(sorted(ENGINE_REGISTRY.keys()))


def register_engine(name: str, import_path: str) -> None:
    """Register ``module.Class`` under ``name``; replaces an existing entry."""
    if not isinstance(name, str) or not name:
        raise ValueError("engine name must be a non-empty string")
    module_path, _, class_name = import_path.rpartition(".")
    if not module_path or not class_name:
        raise ValueError(f"Invalid engine import path for {name!r}: {import_path!r}")
    ENGINE_REGISTRY[name] = import_path


def _load_engine_class(engine_name: str) -> type:
    import_path = ENGINE_REGISTRY[engine_name]
    module_path, _, class_name = import_path.rpartition(".")
    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError as exc:
        raise ImportError(
            f"Unable to import engine module {module_path!r} for {engine_name!r}"
        ) from exc

    try:
        engine_cls = getattr(module, class_name)
    except AttributeError as exc:
        raise ImportError(
            f"Engine class {class_name!r} not found in module {module_path!r}"
        ) from exc

    if not isinstance(engine_cls, type):
        raise TypeError(f"Engine reference {import_path!r} did not resolve to a class")

    return engine_cls


def get_protocol_engine(prefer: str | None = None) -> ProtocolEngine:
    """
    Return an engine instance chosen by ``prefer`` or the feature flags.

    Raises:
        ValueError: If the engine name is not registered.
        ImportError: If the engine class cannot be imported.
        TypeError: If the class does not satisfy ProtocolEngine.
    """
    engine_name = get_engine_name(prefer)
    if engine_name not in ENGINE_REGISTRY:
        raise ValueError(
            f"Invalid engine name: {engine_name!r}. "
            f"Valid options: {_format_valid_options()}"
        )

    engine = _load_engine_class(engine_name)()
    if not isinstance(engine, ProtocolEngine):
        raise TypeError(f"Engine instance {engine!r} does not implement ProtocolEngine")
    return engine
