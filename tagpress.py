#!/usr/bin/env python3
import re
import sys
import shutil
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

import yaml           # pip install pyyaml
from bs4 import BeautifulSoup  # pip install beautifulsoup4

CONFIG_FILENAME = "config.yml"
PROJECT_NAME_FILENAME = "projectname.txt"
PATH_KEYS = ("entries_dir", "static_dir", "images_dir", "output_dir")

# Per-entry source files
TAGS_FILENAME = "tags.txt"
CONTENT_FILENAME = "content.html"

# Templates inside static_dir
BASE_TEMPLATE = "base.html"
ABOUT_TEMPLATE = "about.html"

TITLE_TOKEN = "$TITLE"
CONTENT_TOKEN = "$CONTENT"
NAVCLOUD_TOKEN = "$NAVCLOUD"

# Output layout, relative to output_dir
ENTRIES_SUBDIR = "entries"
TAGS_SUBDIR = "tags"
PAGE_FILENAME = "index.html"


# -----------------------
# Errors
# -----------------------

class BuildError(RuntimeError):
    """Base class for anything that aborts a site build."""


class ConfigError(BuildError):
    """config.yml is unreadable or describes an unsafe layout."""


class MissingEntryFile(BuildError):
    """An entry directory lacks tags.txt or content.html."""

    def __init__(self, entry: str, path: Path):
        self.entry = entry
        self.filename = path.name
        self.path = path
        super().__init__(f"Entry '{entry}' is missing {self.filename} ({path})")


class MissingTemplateFile(BuildError):
    """base.html or about.html is absent."""


class UnreadableInput(BuildError):
    pass


class UnwritableOutput(BuildError):
    pass


class InvalidEntryName(BuildError):
    """An entry directory name collides with a generated page."""

    def __init__(self, entry: str, path: Path):
        self.entry = entry
        self.path = path
        super().__init__(
            f"Entry '{entry}' clashes with the generated entries listing ({path})"
        )


# -----------------------
# Config
# -----------------------

def load_config(project_root: Path) -> dict:
    """
    Load <project_root>/config.yml (optional) and apply defaults.

    Paths stay relative; generate_site resolves them against project_root.
    """
    config_path = project_root / CONFIG_FILENAME
    data = {}
    if config_path.exists():
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Could not read {config_path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a mapping at the top level")

    site_title = data.get("site_title")
    if not site_title:
        name_file = project_root / PROJECT_NAME_FILENAME
        if name_file.exists():
            site_title = read_text(name_file).strip()
        site_title = site_title or project_root.resolve().name

    cfg = {
        "site_title": str(site_title),
        "entries_dir": data.get("entries_dir", "entries"),
        "static_dir": data.get("static_dir", "static"),
        "images_dir": data.get("images_dir", "images"),
        "output_dir": data.get("output_dir", "public"),
        # public/entries/index.html listing every entry
        "entries_index": bool(data.get("entries_index", True)),
    }

    for key in PATH_KEYS:
        if not isinstance(cfg[key], str) or not cfg[key].strip():
            raise ConfigError(
                f"{config_path}: '{key}' must be a non-empty path string, got {cfg[key]!r}"
            )
    return cfg


# -----------------------
# Filesystem helpers
# -----------------------

def read_text(path: Path) -> str:
    """Read a UTF-8 file as-is (no newline translation)."""
    try:
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise UnreadableInput(f"Could not read {path}: {exc}") from exc


def write_text(path: Path, content: str):
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise UnwritableOutput(f"Could not write {path}: {exc}") from exc
    print(f"Wrote {path}")


def check_output_dir(output_dir: Path, project_root: Path, sources):
    """
    Refuse output locations that would wipe the project or its sources
    when the output directory is re-created.
    """
    out = output_dir.resolve()
    root = project_root.resolve()
    if out == root or out in root.parents:
        raise ConfigError(f"Output directory {out} would overwrite the project at {root}")
    if not out.is_relative_to(root):
        raise ConfigError(f"Output directory {out} is outside the project at {root}")

    for source in sources:
        source = source.resolve()
        if out == source or out in source.parents or source in out.parents:
            raise ConfigError(f"Output directory {out} overlaps source directory {source}")


def reset_output_dir(output_dir: Path):
    """Remove any previous build and create an empty output directory."""
    try:
        if output_dir.exists():
            shutil.rmtree(output_dir)
        output_dir.mkdir(parents=True)
    except OSError as exc:
        raise UnwritableOutput(f"Could not re-create {output_dir}: {exc}") from exc


def copy_tree(src: Path, dest: Path):
    """Copy a directory verbatim into the output tree."""
    try:
        shutil.copytree(src, dest)
    except OSError as exc:
        raise UnwritableOutput(f"Could not copy {src} to {dest}: {exc}") from exc
    print(f"Copied {src} to {dest}")


# -----------------------
# Entries
# -----------------------

@dataclass(frozen=True)
class Entry:
    name: str
    tags: tuple
    content: str


def parse_tags(text: str) -> tuple:
    """
    Split tags.txt on whitespace. Duplicates are dropped, first appearance
    keeps its position.
    """
    return tuple(dict.fromkeys(text.split()))


def load_entry(entry_dir: Path) -> Entry:
    for filename in (TAGS_FILENAME, CONTENT_FILENAME):
        if not (entry_dir / filename).is_file():
            raise MissingEntryFile(entry_dir.name, entry_dir / filename)

    return Entry(
        name=entry_dir.name,
        tags=parse_tags(read_text(entry_dir / TAGS_FILENAME)),
        content=read_text(entry_dir / CONTENT_FILENAME),
    )


def load_entries(entries_dir: Path) -> list:
    """
    Load one Entry per subdirectory of entries_dir, ordered by directory name.

    Plain files and hidden directories (.git, etc.) are skipped.
    """
    if not entries_dir.is_dir():
        raise UnreadableInput(f"Entries directory not found: {entries_dir}")

    try:
        entry_dirs = sorted(
            p for p in entries_dir.iterdir()
            if p.is_dir() and not p.name.startswith(".")
        )
    except OSError as exc:
        raise UnreadableInput(f"Could not list {entries_dir}: {exc}") from exc

    return [load_entry(entry_dir) for entry_dir in entry_dirs]


# -----------------------
# Tags
# -----------------------

def slugify_tag(tag: str) -> str:
    """
    Convert a tag like 'Outdoor Trips' into a URL-friendly slug: 'outdoor-trips'.
    """
    s = tag.strip().lower()
    s = re.sub(r"[\s_]+", "-", s)
    s = re.sub(r"[^a-z0-9-]", "", s)
    s = re.sub(r"-{2,}", "-", s).strip("-")
    return s or "tag"


def build_tag_index(entries) -> dict:
    """
    Build a tag index:

      {
        "linux": [entry_a, entry_b],
        "cli":   [entry_a],
      }

    Keys are the exact tag strings in first-seen order; each list keeps
    entry discovery order. Untagged entries appear nowhere.
    """
    tag_index = {}

    for entry in entries:
        for tag in entry.tags:
            tag_index.setdefault(tag, []).append(entry)

    return tag_index


def assign_tag_slugs(tag_index: dict) -> dict:
    """
    Map each tag to a unique slug. Tags are case-sensitive, so 'Linux' and
    'linux' share a base slug; later tags get '-2', '-3', ... in index order.
    """
    slugs = {}
    taken = set()

    for tag in tag_index:
        base = slugify_tag(tag)
        slug = base
        n = 2
        while slug in taken:
            slug = f"{base}-{n}"
            n += 1
        taken.add(slug)
        slugs[tag] = slug

    return slugs


def tag_page_url(slug: str) -> str:
    return f"{TAGS_SUBDIR}/{slug}/{PAGE_FILENAME}"


def build_nav_cloud(tag_index: dict, slugs: dict) -> list:
    """One (tag, url) pair per tag, urls relative to the site root."""
    return [(tag, tag_page_url(slugs[tag])) for tag in tag_index]


def render_nav_cloud(nav_cloud) -> str:
    """HTML fragment for $NAVCLOUD: one link per tag."""
    soup = BeautifulSoup("", "html.parser")
    links = []

    for tag, url in nav_cloud:
        link = soup.new_tag("a", attrs={"class": "tag-link", "href": url})
        link.string = tag
        links.append(str(link))

    return "\n".join(links)


# -----------------------
# Page renderers
# -----------------------

def replace_placeholders(template: str, placeholders: Mapping[str, str]) -> str:
    """
    Replace every literal occurrence of each placeholder key.

    Substitution happens in a single pass, so a replacement value that
    itself contains a placeholder token is left as-is. Unknown tokens in
    the template are not touched.
    """
    keys = sorted((k for k in placeholders if k), key=len, reverse=True)
    if not keys:
        return template

    pattern = re.compile("|".join(re.escape(k) for k in keys))
    return pattern.sub(lambda m: placeholders[m.group(0)], template)


def render_page(base_html: str, title: str, content: str) -> str:
    """
    Fill the shared base template. $NAVCLOUD is cleared here because the
    tag cloud only lives inside the homepage's about fragment.
    """
    return replace_placeholders(
        base_html,
        {
            TITLE_TOKEN: title,
            CONTENT_TOKEN: content,
            NAVCLOUD_TOKEN: "",
        },
    )


def render_homepage(base_html: str, about_html: str, title: str, nav_html: str) -> str:
    about_content = replace_placeholders(about_html, {NAVCLOUD_TOKEN: nav_html})
    return render_page(base_html, title, about_content)


def render_entry_list(entries, href_prefix: str = "") -> str:
    """
    Render a <ul> of links to entry pages, in the given order.
    href_prefix: "" from public/entries/, "../../entries/" from tag pages.
    """
    soup = BeautifulSoup("", "html.parser")
    listing = soup.new_tag("ul", attrs={"class": "entry-list"})

    for entry in entries:
        href = f"{href_prefix}{quote(entry.name)}/{PAGE_FILENAME}"
        link = soup.new_tag("a", attrs={"href": href})
        link.string = entry.name
        item = soup.new_tag("li")
        item.append(link)
        listing.append(item)

    return str(listing)


# -----------------------
# Site
# -----------------------

def read_template(path: Path) -> str:
    if not path.is_file():
        raise MissingTemplateFile(f"Template not found: {path}")
    return read_text(path)


def generate_site(project_root: Path, cfg: dict | None = None) -> dict:
    """
    Build the whole site for project_root into cfg["output_dir"].

    All inputs are read before the output directory is re-created, so an
    input error leaves a previous build in place.
    """
    project_root = Path(project_root).resolve()
    if cfg is None:
        cfg = load_config(project_root)

    entries_dir = project_root / cfg["entries_dir"]
    static_dir = project_root / cfg["static_dir"]
    images_dir = project_root / cfg["images_dir"]
    output_dir = (project_root / cfg["output_dir"]).resolve()

    check_output_dir(output_dir, project_root, (entries_dir, static_dir, images_dir))

    base_html = read_template(static_dir / BASE_TEMPLATE)
    about_html = read_template(static_dir / ABOUT_TEMPLATE)

    entries = load_entries(entries_dir)
    if cfg.get("entries_index", True):
        for entry in entries:
            if entry.name == PAGE_FILENAME:
                raise InvalidEntryName(entry.name, entries_dir / entry.name)

    tag_index = build_tag_index(entries)
    slugs = assign_tag_slugs(tag_index)
    nav_cloud = build_nav_cloud(tag_index, slugs)

    reset_output_dir(output_dir)
    pages = 0

    # index.html
    home_html = render_homepage(
        base_html, about_html, cfg["site_title"], render_nav_cloud(nav_cloud)
    )
    write_text(output_dir / PAGE_FILENAME, home_html)
    pages += 1

    # entries/<name>/index.html
    entries_out = output_dir / ENTRIES_SUBDIR
    for entry in entries:
        page_html = render_page(base_html, entry.name, entry.content)
        write_text(entries_out / entry.name / PAGE_FILENAME, page_html)
        pages += 1

    if cfg.get("entries_index", True):
        listing_html = render_page(base_html, "Entries", render_entry_list(entries))
        write_text(entries_out / PAGE_FILENAME, listing_html)
        pages += 1

    # tags/<slug>/index.html
    for tag, tagged in tag_index.items():
        listing = render_entry_list(tagged, href_prefix=f"../../{ENTRIES_SUBDIR}/")
        page_html = render_page(base_html, tag, listing)
        write_text(output_dir / tag_page_url(slugs[tag]), page_html)
        pages += 1

    # Static assets
    copy_tree(static_dir, output_dir / static_dir.name)
    if images_dir.is_dir():
        copy_tree(images_dir, output_dir / images_dir.name)
    else:
        print(f"WARNING: Images directory not found at {images_dir}", file=sys.stderr)

    return {
        "entries": len(entries),
        "tags": len(tag_index),
        "pages": pages,
        "output_dir": output_dir,
    }


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    project_root = Path(args[0]) if args else Path.cwd()

    try:
        summary = generate_site(project_root.resolve())
    except BuildError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    print(
        f"Built {summary['pages']} pages "
        f"({summary['entries']} entries, {summary['tags']} tags) "
        f"into {summary['output_dir']}"
    )


if __name__ == "__main__":
    main()
