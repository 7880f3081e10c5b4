"""WASM binary and entry point validation.

Checks that bytes are a well-formed WebAssembly binary and that the module
follows the WASI command convention: an exported `_start` function taking no
parameters and returning nothing.
"""

from __future__ import annotations

from wasmtime import Engine, FuncType, Module, WasmtimeError

from rchidrun.core.errors import InvalidModuleError, MissingEntryPointError

WASM_MAGIC = b"\x00asm"


def compile_module(engine: Engine, data: bytes) -> Module:
    """Compile a WASM binary, rejecting anything that is not binary format.

    Wasmtime would otherwise accept WAT text, which is not a valid runtime
    artifact.

    Raises:
        InvalidModuleError: If the bytes are not a well-formed binary module
    """
    if not data.startswith(WASM_MAGIC):
        raise InvalidModuleError("Not a WebAssembly binary (missing \\0asm header)")

    try:
        Module.validate(engine, data)
        return Module(engine, data)
    except WasmtimeError as e:
        raise InvalidModuleError(f"Malformed WebAssembly module: {e}") from e


def check_entry_point(module: Module, entry_point: str = "_start") -> None:
    """Ensure the module exports `entry_point` with a `() -> ()` signature.

    Raises:
        MissingEntryPointError: If the export is absent, not a function, or has
            parameters or results
    """
    for export in module.exports:
        if export.name != entry_point:
            continue
        export_type = export.type
        if not isinstance(export_type, FuncType):
            raise MissingEntryPointError(f"Export '{entry_point}' is not a function")
        if export_type.params or export_type.results:
            raise MissingEntryPointError(
                f"Export '{entry_point}' must take no parameters and return nothing"
            )
        return

    raise MissingEntryPointError(f"Module does not export an entry point named '{entry_point}'")


def validate_module(engine: Engine, data: bytes, entry_point: str = "_start") -> Module:
    """Validate module bytes for installation and return the compiled module.

    Raises:
        InvalidModuleError: Malformed binary
        MissingEntryPointError: Well-formed but without a usable entry point
    """
    module = compile_module(engine, data)
    check_entry_point(module, entry_point)
    return module
