import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

DOMAINS = (
    "users",
    "questions",
    "games",
    "answers",
    "daily_challenge",
    "leaderboard",
    "guest",
    "issues",
    "admin",
    "cron",
)

DOMAIN_CONFIGS = {
    domain: {
        "paths": [ROOT / "routers" / domain],
        "allowed_prefixes": [f"routers.{domain}", "routers.dependencies"],
    }
    for domain in DOMAINS
}

# Only these modules may talk to the Descope SDK.
DESCOPE_MODULES = {ROOT / "auth.py"}


def _iter_python_files(paths):
    for base in paths:
        if not base.exists():
            continue
        if base.is_file():
            yield base
            continue
        for path in base.rglob("*.py"):
            if path.is_file():
                yield path


def _iter_imported_modules(tree):
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                yield node.module


def _is_cross_domain_import(module_name, allowed_prefixes):
    if not module_name.startswith("routers."):
        return False
    for prefix in allowed_prefixes:
        if module_name == prefix or module_name.startswith(prefix + "."):
            return False
    return True


def test_no_cross_domain_imports():
    """
    Enforces "no cross-domain imports" across all Python modules within each domain,
    including `api.py` routers, and also `service.py`/`repository.py`/`schemas.py`.
    Shared behaviour lives in `core/` and `utils/`.
    """
    violations = []
    for domain, config in DOMAIN_CONFIGS.items():
        for path in _iter_python_files(config["paths"]):
            tree = ast.parse(path.read_text(), filename=str(path))
            for module_name in _iter_imported_modules(tree):
                if _is_cross_domain_import(module_name, config["allowed_prefixes"]):
                    violations.append(f"{path}: {module_name} ({domain})")

    if violations:
        joined = "\n".join(sorted(violations))
        raise AssertionError(f"Cross-domain imports detected:\n{joined}")


def test_only_auth_module_imports_descope():
    """Token validation goes through `auth.py`; domains use `routers.dependencies`."""
    paths = [ROOT / "routers", ROOT / "core", ROOT / "utils", ROOT / "scripts", ROOT / "main.py"]
    violations = []
    for path in _iter_python_files(paths):
        if path in DESCOPE_MODULES:
            continue
        tree = ast.parse(path.read_text(), filename=str(path))
        for module_name in _iter_imported_modules(tree):
            if module_name == "descope" or module_name.startswith("descope."):
                violations.append(str(path))

    if violations:
        joined = "\n".join(sorted(set(violations)))
        raise AssertionError(f"Descope imported outside auth.py:\n{joined}")


def test_shared_layers_do_not_import_routers():
    """`core/` and `utils/` sit below the domains and must not reach back into them."""
    allowed = {"routers.users", "routers.users.repository"}
    violations = []
    for path in _iter_python_files([ROOT / "core", ROOT / "utils"]):
        tree = ast.parse(path.read_text(), filename=str(path))
        for module_name in _iter_imported_modules(tree):
            if module_name.startswith("routers.") and module_name not in allowed:
                violations.append(f"{path}: {module_name}")

    if violations:
        joined = "\n".join(sorted(violations))
        raise AssertionError(f"Shared layers import domain routers:\n{joined}")
