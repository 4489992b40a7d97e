import re
from pathlib import Path


def compact_home_path(path: str | Path) -> str:
    try:
        relative = Path(path).relative_to(Path.home())
    except ValueError:
        return str(path)
    if relative == Path("."):
        return "~"
    return f"~/{relative.as_posix()}"


def compact_home_paths_in_text(text: str) -> str:
    home = re.escape(str(Path.home()))
    return re.sub(rf"{home}(?![\w.-])", "~", text)
