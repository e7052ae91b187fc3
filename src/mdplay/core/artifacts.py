"""Best-effort lookup of externally compiled module scripts"""

import json

from mdplay.core.models import Artifact, ArtifactStatus, Module
from mdplay.core.modules import ModuleLayout
from mdplay.logging import get_logger


logger = get_logger("artifacts")

DIAGNOSTIC_TEMPLATE = """\
(() => {{
  const notice = document.createElement("pre");
  notice.setAttribute("role", "alert");
  notice.style.cssText = "margin:0;padding:12px;color:#b91c1c;background:#fef2f2;border:1px solid #fecaca;font:13px/1.4 monospace;white-space:pre-wrap";
  notice.textContent = {message};
  document.body.appendChild(notice);
}})();
"""

_REASONS = {
    ArtifactStatus.pending: "the build has not run for this module yet",
    ArtifactStatus.failed: "the build ran but produced no output",
}


def diagnostic_script(module: Module, status: ArtifactStatus) -> str:
    """Return a self-contained script that shows a visible notice naming the missing output."""
    message = (
        f"Compiled output not found: {module.expected_output_path.as_posix()}\n"
        f"({_REASONS.get(status, status.value)}; namespace {module.namespace}, "
        f"snippet {module.sequence_number})"
    )
    # json.dumps gives a valid JS string literal; escape '<' so the text can't close a <script>.
    return DIAGNOSTIC_TEMPLATE.format(message=json.dumps(message).replace('<', '\\u003c'))


def retrieve_artifact(layout: ModuleLayout, namespace: str, sequence_number: int) -> Artifact:
    """Read the expected compiled script for a module; never waits and never raises when absent."""
    module = layout.module(namespace, sequence_number)
    path = module.expected_output_path
    try:
        script = path.read_text(encoding='utf-8')
    except FileNotFoundError:
        status = ArtifactStatus.failed if path.parent.parent.is_dir() else ArtifactStatus.pending
        logger.warning("Missing compiled output %s (%s)", path, status.value)
        return Artifact(module=module, status=status, script=diagnostic_script(module, status))
    return Artifact(module=module, status=ArtifactStatus.ready, script=script)
