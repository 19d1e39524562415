from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .config import settings
from .errors import StatusError

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("text", "json")


@dataclass
class FunctionStatus:
    configuration: Dict[str, Any]
    code: Dict[str, Any] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)

    def to_text(self) -> str:
        c = self.configuration
        logging_config = c.get("LoggingConfig") or {}
        log_lines = [
            "  LogFormat: " + str(logging_config.get("LogFormat", "")),
            "  LogGroup: " + str(logging_config.get("LogGroup", "")),
        ]
        if logging_config.get("ApplicationLogLevel"):
            log_lines.append("  ApplicationLogLevel: " + logging_config["ApplicationLogLevel"])
        if logging_config.get("SystemLogLevel"):
            log_lines.append("  SystemLogLevel: " + logging_config["SystemLogLevel"])

        snap_start = ""
        if c.get("SnapStart"):
            ss = c["SnapStart"]
            snap_start = "\n".join([
                "  ApplyOn: " + str(ss.get("ApplyOn", "")),
                "  OptimizationStatus: " + str(ss.get("OptimizationStatus", "")),
            ])

        tags = ",".join(f"{k}={v}" for k, v in sorted(self.tags.items()))
        lines = [
            "FunctionName: " + str(c.get("FunctionName", "")),
            "Description: " + str(c.get("Description", "")),
            "Version: " + str(c.get("Version", "")),
            "FunctionArn: " + str(c.get("FunctionArn", "")),
            "Role: " + str(c.get("Role", "")),
            "State: " + str(c.get("State", "")),
            "LastUpdateStatus: " + str(c.get("LastUpdateStatus", "")),
            "LoggingConfig: \n" + "\n".join(log_lines),
            "SnapStart: \n" + snap_start,
            "Architectures: " + ",".join(c.get("Architectures") or []),
            "Runtime: " + str(c.get("Runtime", "")),
            "Handler: " + str(c.get("Handler", "")),
            "Timeout: " + str(c.get("Timeout", 0)),
            "MemorySize: " + str(c.get("MemorySize", 0)),
            "PackageType: " + str(c.get("PackageType", "")),
            "CodeSize: " + str(c.get("CodeSize", 0)),
            "CodeSha256: " + str(c.get("CodeSha256", "")),
            "Tags: " + tags,
        ]
        return "\n".join(lines) + "\n"

    def to_json(self) -> str:
        doc = {"Configuration": self.configuration, "Code": self.code, "Tags": self.tags}
        return json.dumps(doc, indent=2, default=str) + "\n"


def unqualified_arn(function_arn: str) -> str:
    # arn:aws:lambda:region:account:function:name[:qualifier]
    parts = function_arn.split(":")
    return ":".join(parts[:7])


def fetch_status(client: Any, function_name: Optional[str] = None, qualifier: str = "$LATEST") -> FunctionStatus:
    function_name = function_name or settings.function_name
    if not function_name:
        raise StatusError("function name is required (set FNBUNDLE_FUNCTION_NAME)")
    try:
        res = client.get_function(FunctionName=function_name, Qualifier=qualifier)
    except (ClientError, BotoCoreError) as e:
        raise StatusError(f"failed to GetFunction {function_name}: {e}") from e
    configuration = res.get("Configuration") or {}
    code = res.get("Code") or {}

    # tags live on the function itself, not on versions or aliases
    resource = unqualified_arn(configuration.get("FunctionArn", ""))
    logger.debug("list tags Resource %s", resource)
    try:
        tags = client.list_tags(Resource=resource).get("Tags") or {}
    except (ClientError, BotoCoreError) as e:
        raise StatusError(f"failed to list tags for {resource}: {e}") from e
    return FunctionStatus(configuration=configuration, code=code, tags=tags)


def render_status(status: FunctionStatus, output: str = "text") -> str:
    if output == "text":
        return status.to_text()
    if output == "json":
        return status.to_json()
    raise ValueError(f"unknown output format {output!r}, expected one of {', '.join(OUTPUT_FORMATS)}")
