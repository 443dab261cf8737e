"""
Coverage gate for the schema_form package.

Modules are classified by their imports rather than by a hand-kept list:
- editor core: modules that do not import streamlit; each must reach
  ``core_threshold_percent``.
- Streamlit-facing: modules that import streamlit; each needs an entry in
  ``ui_baseline_percent`` and must not fall below it.
"""

from __future__ import annotations

import argparse
import ast
import json
import sys
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List


DEFAULT_PACKAGE = "schema_form"
UI_LIBRARY = "streamlit"


@dataclass
class PolicyReport:
    core_modules: List[str] = field(default_factory=list)
    ui_modules: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    core_failures: List[str] = field(default_factory=list)
    ui_regressions: List[str] = field(default_factory=list)
    unbaselined: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not (self.missing or self.core_failures or self.ui_regressions or self.unbaselined)


def imports_library(source: str, library: str = UI_LIBRARY) -> bool:
    """True if the module source imports ``library`` or one of its submodules."""
    for node in ast.walk(ast.parse(source)):
        if isinstance(node, ast.Import):
            names = [alias.name for alias in node.names]
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            names = [node.module]
        else:
            continue
        if any(name == library or name.startswith(f"{library}.") for name in names):
            return True
    return False


def classify_modules(package_dir: Path) -> Dict[str, List[str]]:
    """Split a package's modules into ``core`` and ``ui`` by their streamlit imports."""
    classified: Dict[str, List[str]] = {'core': [], 'ui': []}
    for path in sorted(package_dir.glob("*.py")):
        if path.name == "__init__.py":
            continue
        module = f"{package_dir.name}/{path.name}"
        kind = 'ui' if imports_library(path.read_text(encoding="utf-8")) else 'core'
        classified[kind].append(module)
    return classified


def _module_key(filename: str, package: str) -> str:
    normalized = filename.replace("\\", "/")
    # coverage.py reports paths relative to its source root, which may be the package itself
    marker = f"{package}/"
    if marker in normalized:
        return marker + normalized.split(marker, 1)[1]
    return marker + Path(normalized).name


def load_module_coverage(coverage_xml: Path, package: str = DEFAULT_PACKAGE) -> Dict[str, float]:
    """Read per-module line coverage (percent) from a Cobertura coverage.xml."""
    root = ET.parse(coverage_xml).getroot()
    return {
        _module_key(node.attrib.get("filename", ""), package): float(node.attrib.get("line-rate", "0")) * 100.0
        for node in root.iter("class")
    }


def evaluate_policy(policy: dict, classified: Dict[str, List[str]],
                    module_coverage: Dict[str, float]) -> PolicyReport:
    threshold = float(policy["core_threshold_percent"])
    baselines = policy.get("ui_baseline_percent", {})
    report = PolicyReport(core_modules=list(classified['core']), ui_modules=list(classified['ui']))

    for module in report.core_modules:
        if module not in module_coverage:
            report.missing.append(module)
        elif module_coverage[module] + 1e-9 < threshold:
            report.core_failures.append(f"{module}: {module_coverage[module]:.2f}% < {threshold:.2f}%")

    for module in report.ui_modules:
        if module not in baselines:
            report.unbaselined.append(module)
        elif module not in module_coverage:
            report.missing.append(module)
        elif module_coverage[module] + 1e-9 < float(baselines[module]):
            report.ui_regressions.append(
                f"{module}: {module_coverage[module]:.2f}% < baseline {float(baselines[module]):.2f}%"
            )

    return report


def refresh_ui_baseline(policy: dict, classified: Dict[str, List[str]],
                        module_coverage: Dict[str, float]) -> dict:
    """Record current coverage for every Streamlit-facing module; stale entries are dropped."""
    updated = dict(policy)
    updated["ui_baseline_percent"] = {
        module: round(module_coverage.get(module, 0.0), 2) for module in classified['ui']
    }
    return updated


def _print_section(title: str, items: List[str]) -> None:
    if items:
        print(f"[coverage-policy] {title}:")
        for item in items:
            print(" -", item)


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Coverage gate for editor core and Streamlit modules.")
    parser.add_argument("--package-dir", default=DEFAULT_PACKAGE, help="Package directory to classify")
    parser.add_argument("--coverage-xml", default="coverage.xml", help="Path to coverage.xml")
    parser.add_argument("--policy-file", default="coverage_policy.json", help="Path to policy JSON file")
    parser.add_argument("--update-ui-baseline", action="store_true",
                        help="Rewrite ui_baseline_percent from current coverage of Streamlit modules")
    args = parser.parse_args(argv)

    package_dir = Path(args.package_dir)
    coverage_path = Path(args.coverage_xml)
    policy_path = Path(args.policy_file)
    for required in (package_dir, coverage_path, policy_path):
        if not required.exists():
            print(f"[coverage-policy] Missing: {required}")
            return 2

    policy = json.loads(policy_path.read_text(encoding="utf-8"))
    classified = classify_modules(package_dir)
    module_coverage = load_module_coverage(coverage_path, package_dir.name)

    if args.update_ui_baseline:
        updated = refresh_ui_baseline(policy, classified, module_coverage)
        policy_path.write_text(json.dumps(updated, indent=2) + "\n", encoding="utf-8")
        print(f"[coverage-policy] Updated Streamlit baselines in {policy_path}")
        return 0

    report = evaluate_policy(policy, classified, module_coverage)
    print(f"[coverage-policy] Core modules ({len(report.core_modules)}), threshold "
          f"{policy['core_threshold_percent']}%")
    print(f"[coverage-policy] Streamlit modules ({len(report.ui_modules)})")
    _print_section("Missing from coverage report", sorted(set(report.missing)))
    _print_section("Core threshold failures", report.core_failures)
    _print_section("Streamlit coverage regressions", report.ui_regressions)
    _print_section("Streamlit modules without a baseline", report.unbaselined)

    if not report.passed:
        return 1
    print("[coverage-policy] PASS")
    return 0


if __name__ == "__main__":
    sys.exit(main())
