from __future__ import annotations

from pathlib import Path

import pytest

BASE_HTML = (
    "<html><head><title>$TITLE</title>"
    '<link rel="stylesheet" href="/static/style.css"></head>'
    "<body>$NAVCLOUD<main>$CONTENT</main></body></html>\n"
)
ABOUT_HTML = "<p>Welcome.</p>\n<nav>$NAVCLOUD</nav>\n"


class ProjectBuilder:
    """Writes a minimal site project (entries, static, images) under a root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        (root / "entries").mkdir(parents=True, exist_ok=True)
        self.write("static/base.html", BASE_HTML)
        self.write("static/about.html", ABOUT_HTML)
        self.write("static/style.css", "body { color: black; }\n")
        self.write("projectname.txt", "My Blog\n")

    def write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def entry(self, name: str, tags: str = "", content: str | None = None) -> Path:
        self.write(f"entries/{name}/tags.txt", tags)
        self.write(f"entries/{name}/content.html", content if content is not None else f"<p>{name}</p>")
        return self.root / "entries" / name

    def image(self, name: str, data: bytes = b"\x89PNG fake") -> Path:
        path = self.root / "images" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path


@pytest.fixture
def project(tmp_path: Path) -> ProjectBuilder:
    """Provide a project tree rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path / "site")
