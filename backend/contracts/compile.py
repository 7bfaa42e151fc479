"""
Contract ABI exporter — writes each contract's interface to compiled/.

Usage:
    python -m contracts.compile                   # Exports all contracts
    python -m contracts.compile tune_tokenize     # Exports a specific contract

For every contracts/<name>/contract.py the exporter writes:
    compiled/abi.json            — functions, events and errors
    compiled/contract_info.json  — name, description, version, methods
"""
import importlib
import inspect
import json
import logging
import os
import sys

from chain.contract import Contract

logger = logging.getLogger(__name__)

CONTRACTS_DIR = os.path.dirname(__file__)


def find_contract_class(module) -> type:
    """Return the Contract subclass named by the module's CONTRACT_NAME."""
    name = getattr(module, "CONTRACT_NAME", None)
    cls = getattr(module, name, None) if name else None
    if not (inspect.isclass(cls) and issubclass(cls, Contract)):
        raise ValueError(f"'{module.__name__}' must define CONTRACT_NAME naming a Contract subclass")
    return cls


def build_abi(cls: type) -> list[dict]:
    """Describe the entry points, events and errors of a contract class."""
    abi = []
    for name, member in inspect.getmembers(cls, callable):
        kind = getattr(member, "abi_kind", None)
        if kind is None:
            continue
        params = list(inspect.signature(member).parameters.values())[1:]
        abi.append({
            "type": "function",
            "name": name,
            "inputs": [
                {"name": p.name, "type": _type_name(p.annotation)}
                for p in params
                if p.kind is p.POSITIONAL_OR_KEYWORD
            ],
            "stateMutability": kind,
        })

    for event, fields in cls.events().items():
        abi.append({
            "type": "event",
            "name": event,
            "inputs": [{"name": field} for field in fields],
        })

    for error in cls.errors():
        abi.append({"type": "error", "name": error.reason})

    return abi


def _type_name(annotation) -> str:
    if annotation is inspect.Parameter.empty:
        return "any"
    return getattr(annotation, "__name__", str(annotation))


def compile_contract(contract_name: str) -> dict | None:
    """Export a single contract by name. Returns its contract info."""
    contract_dir = os.path.join(CONTRACTS_DIR, contract_name)
    compiled_dir = os.path.join(contract_dir, "compiled")
    contract_module_path = os.path.join(contract_dir, "contract.py")

    if not os.path.exists(contract_module_path):
        logger.warning(f"Skipping '{contract_name}' — no contract.py found")
        return None

    module_name = f"contracts.{contract_name}.contract"
    try:
        module = importlib.import_module(module_name)
        cls = find_contract_class(module)
    except Exception as e:
        logger.error(f"Failed to load '{module_name}': {e}")
        return None

    os.makedirs(compiled_dir, exist_ok=True)
    abi = build_abi(cls)

    abi_path = os.path.join(compiled_dir, "abi.json")
    with open(abi_path, "w") as f:
        json.dump(abi, f, indent=2)

    info = {
        "name": module.CONTRACT_NAME,
        "description": getattr(module, "CONTRACT_DESCRIPTION", ""),
        "version": getattr(module, "CONTRACT_VERSION", "1.0.0"),
        "methods": getattr(module, "CONTRACT_METHODS", []),
        "events": sorted(cls.events()),
        "errors": [error.reason for error in cls.errors()],
    }
    info_path = os.path.join(compiled_dir, "contract_info.json")
    with open(info_path, "w") as f:
        json.dump(info, f, indent=2)

    logger.info(f"'{contract_name}' exported: {os.path.relpath(abi_path)}, {os.path.relpath(info_path)}")
    return info


def compile_all() -> dict:
    """Export every contract in the contracts directory."""
    exported = {}
    for entry in sorted(os.listdir(CONTRACTS_DIR)):
        entry_path = os.path.join(CONTRACTS_DIR, entry)
        if (
            os.path.isdir(entry_path)
            and entry != "__pycache__"
            and os.path.exists(os.path.join(entry_path, "contract.py"))
        ):
            info = compile_contract(entry)
            if info is not None:
                exported[entry] = info
    return exported


if __name__ == "__main__":
    # Allow running from backend/ directory
    backend_dir = os.path.dirname(CONTRACTS_DIR)
    if backend_dir not in sys.path:
        sys.path.insert(0, backend_dir)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    if len(sys.argv) > 1:
        compile_contract(sys.argv[1])
    else:
        compile_all()
