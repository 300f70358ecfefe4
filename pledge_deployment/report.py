import json
from pathlib import Path
from typing import Mapping

from pledge_deployment.executor import ExecutionReport, StepStatus
from pledge_deployment.registry import STANDARD_REGISTRY_JSON_FORMAT

_STATUS_MARKERS = {
    StepStatus.DEPLOYED: "+",
    StepStatus.SKIPPED: "=",
    StepStatus.FAILED: "!",
    StepStatus.NOT_ATTEMPTED: " ",
}


def format_addresses(addresses: Mapping[str, str]) -> str:
    if not addresses:
        return "(no deployments)"
    width = max(len(name) for name in addresses)
    return "\n".join(f"{name.ljust(width)}  {address}" for name, address in addresses.items())


def format_report(report: ExecutionReport) -> str:
    lines = [f"Network: {report.network}", ""]
    for outcome in report.steps:
        marker = _STATUS_MARKERS[outcome.status]
        line = f"[{marker}] {outcome.name}: {outcome.status.value}"
        if outcome.error:
            line += f" ({outcome.error})"
        lines.append(line)
    for name in report.excluded:
        lines.append(f"[-] {name}: not applicable")

    attempted = [v for v in report.verifications if v.attempted]
    if attempted:
        lines += ["", "Verification:"]
        for verification in attempted:
            if verification.succeeded:
                lines.append(f"\t{verification.name}: verified")
            else:
                lines.append(f"\t{verification.name}: failed ({verification.error_message})")

    lines += ["", "Addresses:", format_addresses(report.addresses)]
    return "\n".join(lines)


def write_report(report: ExecutionReport, filepath: Path) -> Path:
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as file:
        json.dump(report.to_dict(), file, **STANDARD_REGISTRY_JSON_FORMAT)
    return filepath
