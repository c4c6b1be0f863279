from pathlib import Path

from statement_worker.extraction.exceptions import PromptLoadError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_system_prompt(path: Path | None = None) -> str:
    """Load the extraction system prompt.

    Args:
        path: Path to the prompt file.
              Defaults to the bundled extraction_system_prompt.txt.

    Raises:
        PromptLoadError: if the file cannot be read.
    """
    return _read_prompt(path or _DEFAULT_PROMPT_DIR / "extraction_system_prompt.txt")


def load_user_prompt_template(path: Path | None = None) -> str:
    """Load the user prompt template. It must contain a {document_text} placeholder."""
    template = _read_prompt(path or _DEFAULT_PROMPT_DIR / "extraction_user_prompt.txt")
    if "{document_text}" not in template:
        raise PromptLoadError("User prompt template is missing the {document_text} placeholder")
    return template


def _read_prompt(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PromptLoadError(f"Failed to load prompt {path.name}: {exc}") from exc
