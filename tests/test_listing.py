"""Tests for post listing generation."""

from __future__ import annotations

import datetime
from pathlib import Path

import pytest

from blogsmith.errors import ConfigurationError, FrontMatterError
from blogsmith.index.listing import collect_entries, render_listing, sort_entries, write_listing
from blogsmith.ingestion.frontmatter import parse_front_matter
from blogsmith.models import IndexEntry


def _post(root: Path, name: str, front_matter: str | None, body: str = "Body\n") -> Path:
    path = root / "posts" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    text = f"---\n{front_matter}---\n{body}" if front_matter is not None else body
    path.write_text(text, encoding="utf-8")
    return path


def _entry(title: str, day: datetime.date | None) -> IndexEntry:
    return IndexEntry(title=title, subtitle=None, date=day, word_count=None, link=f"posts/{title}.html")


class TestCollectEntries:
    """Test collect_entries function."""

    def test_reads_front_matter(self, tmp_path: Path) -> None:
        """Should extract every recognized field and link to the output file."""
        _post(
            tmp_path,
            "priors.md",
            "title: On Priors\nsubtitle: A short note\ndate: 2024-06-15\nword_count: 1,200 words\n",
        )

        entries = collect_entries(tmp_path, "posts")

        assert entries == [
            IndexEntry(
                title="On Priors",
                subtitle="A short note",
                date=datetime.date(2024, 6, 15),
                word_count="1,200 words",
                link="posts/priors.html",
            )
        ]

    def test_missing_fields_tolerated(self, tmp_path: Path) -> None:
        """Optional fields may be absent."""
        _post(tmp_path, "bare.md", "date: 2023-01-01\n")

        entry = collect_entries(tmp_path, "posts")[0]

        assert entry.title == "bare"
        assert entry.subtitle is None
        assert entry.word_count is None

    def test_no_front_matter(self, tmp_path: Path) -> None:
        """A post without front-matter falls back to its file name."""
        _post(tmp_path, "untitled-thoughts.md", None)

        entry = collect_entries(tmp_path, "posts")[0]

        assert entry.title == "untitled-thoughts"
        assert entry.date is None

    def test_one_level_only(self, tmp_path: Path) -> None:
        """Nested directories inside the section are not listed."""
        _post(tmp_path, "top.md", "title: Top\n")
        nested = tmp_path / "posts" / "drafts" / "hidden.md"
        nested.parent.mkdir(parents=True)
        nested.write_text("---\ntitle: Draft\n---\n", encoding="utf-8")

        titles = [entry.title for entry in collect_entries(tmp_path, "posts")]

        assert titles == ["Top"]

    def test_custom_output_extension(self, tmp_path: Path) -> None:
        """Links follow the configured output extension."""
        _post(tmp_path, "a.md", "title: A\n")

        entry = collect_entries(tmp_path, "posts", output_ext=".htm")[0]

        assert entry.link == "posts/a.htm"

    def test_invalid_date_is_fatal(self, tmp_path: Path) -> None:
        """An unparseable date stops index generation."""
        _post(tmp_path, "good.md", "date: 2023-01-01\n")
        _post(tmp_path, "bad.md", "date: last spring\n")

        with pytest.raises(FrontMatterError, match="bad.md"):
            collect_entries(tmp_path, "posts")

    def test_malformed_block_is_fatal(self, tmp_path: Path) -> None:
        """A block without its closing marker stops index generation."""
        path = tmp_path / "posts" / "open.md"
        path.parent.mkdir(parents=True)
        path.write_text("---\ntitle: Open\n\nBody\n", encoding="utf-8")

        with pytest.raises(FrontMatterError):
            collect_entries(tmp_path, "posts")

    def test_missing_section(self, tmp_path: Path) -> None:
        """A missing section directory is a configuration error."""
        with pytest.raises(ConfigurationError, match="Section directory not found"):
            collect_entries(tmp_path, "posts")


    def test_links_relative_to_listing(self, tmp_path: Path) -> None:
        """Links are computed from the directory holding the listing."""
        _post(tmp_path, "a.md", "title: A\n")

        entry = collect_entries(tmp_path, "posts", link_base=tmp_path / "pages")[0]

        assert entry.link == "../posts/a.html"

    def test_yaml_header_values(self, tmp_path: Path) -> None:
        """Quoted titles and pandoc list metadata are read as YAML."""
        _post(tmp_path, "q.md", "title: 'Bayes: a primer'\nauthor:\n  - Alice\n  - Bob\n")

        entry = collect_entries(tmp_path, "posts")[0]

        assert entry.title == "Bayes: a primer"


class TestSortEntries:
    """Test sort_entries function."""

    def test_newest_first(self) -> None:
        """Entries are ordered by date, newest first."""
        entries = [
            _entry("a", datetime.date(2023, 1, 1)),
            _entry("b", datetime.date(2024, 6, 15)),
            _entry("c", datetime.date(2022, 3, 3)),
        ]

        ordered = [entry.date.isoformat() for entry in sort_entries(entries)]

        assert ordered == ["2024-06-15", "2023-01-01", "2022-03-03"]

    def test_ties_keep_discovery_order(self) -> None:
        """Equal dates keep their original relative order."""
        day = datetime.date(2024, 1, 1)
        entries = [_entry("first", day), _entry("second", day), _entry("third", day)]

        assert [entry.title for entry in sort_entries(entries)] == ["first", "second", "third"]

    def test_undated_last(self) -> None:
        """Entries without a date come after dated ones, in discovery order."""
        entries = [
            _entry("undated-1", None),
            _entry("old", datetime.date(2020, 1, 1)),
            _entry("undated-2", None),
            _entry("new", datetime.date(2021, 1, 1)),
        ]

        titles = [entry.title for entry in sort_entries(entries)]

        assert titles == ["new", "old", "undated-1", "undated-2"]


class TestRenderListing:
    """Test render_listing function."""

    def test_front_matter_header(self) -> None:
        """The listing is itself a content file with minimal front-matter."""
        front_matter, _ = parse_front_matter(render_listing([], title="Writing"))

        assert front_matter is not None
        assert front_matter.title == "Writing"
        assert front_matter.generate_toc is False

    def test_entry_formatting(self) -> None:
        """Each entry links to the post and shows its details."""
        entry = IndexEntry(
            title="On Priors",
            subtitle="A short note",
            date=datetime.date(2024, 6, 15),
            word_count="1,200 words",
            link="posts/priors.html",
        )

        text = render_listing([entry])

        assert "## [On Priors](posts/priors.html)" in text
        assert "*A short note*" in text
        assert "2024-06-15 · 1,200 words" in text

    def test_absent_fields_omitted(self) -> None:
        """Absent subtitle, date and word count leave no placeholders."""
        text = render_listing([_entry("plain", None)])

        assert "## [plain](posts/plain.html)" in text
        assert "*" not in text
        assert "·" not in text
        assert "None" not in text

    def test_header_title_is_escaped(self) -> None:
        """Quotes and colons in the listing title survive as valid YAML."""
        front_matter, _ = parse_front_matter(render_listing([], title='The "Best": Posts'))

        assert front_matter is not None
        assert front_matter.title == 'The "Best": Posts'

    def test_entry_text_is_escaped(self) -> None:
        """Brackets and asterisks in titles cannot break the link markup."""
        entry = IndexEntry(
            title="Arrays [part 1]",
            subtitle="a*b",
            date=None,
            word_count=None,
            link="posts/arrays.html",
        )

        text = render_listing([entry])

        assert "## [Arrays \\[part 1\\]](posts/arrays.html)" in text
        assert "*a\\*b*" in text

    def test_keeps_given_order(self) -> None:
        """Rendering does not reorder entries."""
        text = render_listing([_entry("zeta", None), _entry("alpha", None)])

        assert text.index("zeta") < text.index("alpha")


class TestWriteListing:
    """Test write_listing function."""

    def test_writes_sorted_listing(self, tmp_path: Path) -> None:
        """Writes <section>.md next to the section, newest post first."""
        _post(tmp_path, "a.md", "title: Middle\ndate: 2023-01-01\n")
        _post(tmp_path, "b.md", "title: Newest\ndate: 2024-06-15\n")
        _post(tmp_path, "c.md", "title: Oldest\ndate: 2022-03-03\n")

        entries = write_listing(tmp_path, "posts")

        text = (tmp_path / "posts.md").read_text(encoding="utf-8")
        assert [entry.title for entry in entries] == ["Newest", "Middle", "Oldest"]
        assert text.index("Newest") < text.index("Middle") < text.index("Oldest")

    def test_custom_destination(self, tmp_path: Path) -> None:
        """The listing can be written elsewhere."""
        _post(tmp_path, "a.md", "title: A\ndate: 2023-01-01\n")
        target = tmp_path / "pages" / "archive.md"

        write_listing(tmp_path, "posts", destination=target, title="Archive")

        text = target.read_text(encoding="utf-8")
        front_matter, _ = parse_front_matter(text)
        assert front_matter is not None
        assert front_matter.title == "Archive"
        assert "## [A](../posts/a.html)" in text

    def test_regeneration_is_stable(self, tmp_path: Path) -> None:
        """Regenerating the listing does not list the listing itself."""
        _post(tmp_path, "a.md", "title: A\ndate: 2023-01-01\n")

        write_listing(tmp_path, "posts")
        first = (tmp_path / "posts.md").read_text(encoding="utf-8")
        write_listing(tmp_path, "posts")

        assert (tmp_path / "posts.md").read_text(encoding="utf-8") == first

    def test_error_leaves_old_listing(self, tmp_path: Path) -> None:
        """A parse error does not overwrite the previous listing."""
        (tmp_path / "posts.md").write_text("old listing", encoding="utf-8")
        _post(tmp_path, "bad.md", "date: 2023-13-45\n")

        with pytest.raises(FrontMatterError):
            write_listing(tmp_path, "posts")

        assert (tmp_path / "posts.md").read_text(encoding="utf-8") == "old listing"
