"""Tests for options file parsing, inheritance and macro expansion."""

from __future__ import annotations

from pathlib import Path

import pytest

from treepub.errors import ConfigError, OptionsResolutionError
from treepub.options import CATCH_ALL, DirectoryOptions, OptionsResolver, expand_macros, parse_options


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    """Create root/src and root/site directories."""
    (tmp_path / "src").mkdir()
    (tmp_path / "site").mkdir()
    return tmp_path


@pytest.fixture
def resolver(tree: Path) -> OptionsResolver:
    """Create a resolver over the test tree."""
    return OptionsResolver(tree / "src", tree / "site", tree)


class TestParseOptions:
    """Tests for parse_options."""

    def test_lines_before_a_group_go_to_catch_all(self) -> None:
        """Option text before any ::PATTERN:: line forms a catch-all group."""
        options = parse_options("--standalone\n--toc\n")

        assert len(options.groups) == 1
        assert options.groups[0].pattern.pattern == CATCH_ALL
        assert options.groups[0].options == " --standalone --toc"

    def test_groups_in_file_order(self) -> None:
        """Each ::PATTERN:: line opens a new group."""
        options = parse_options("::draft::\n--draft\n::\\.md$::\n--toc\n--css=a.css\n")

        assert [g.pattern.pattern for g in options.groups] == ["draft", r"\.md$"]
        assert [g.options for g in options.groups] == [" --draft", " --toc --css=a.css"]

    def test_comments_and_blank_lines_skipped(self) -> None:
        """Blank lines and lines starting with # are ignored."""
        options = parse_options("# heading\n\n   # indented comment\n--toc\n")

        assert options.groups[0].options == " --toc"

    def test_hash_inside_option_is_kept(self) -> None:
        """Only a leading # makes a comment."""
        options = parse_options("--metadata=color:#fff\n")

        assert options.groups[0].options == " --metadata=color:#fff"

    def test_directive_sets_converter(self) -> None:
        """A pandoc: line is a directive, not option text."""
        options = parse_options("pandoc: /opt/bin/pandoc\n--toc\n")

        assert options.converter == "/opt/bin/pandoc"
        assert options.groups[0].options == " --toc"

    def test_empty_file(self) -> None:
        """An empty file yields no groups."""
        options = parse_options("")

        assert not options
        assert options.converter is None


class TestExpandMacros:
    """Tests for macro substitution."""

    def test_substitutes_value(self) -> None:
        """$NAME is replaced verbatim."""
        assert expand_macros("$SOURCEROOT/x", {"SOURCEROOT": "/a/b"}) == "/a/b/x"

    def test_no_macros_unchanged(self) -> None:
        """Text without known macros is returned as-is."""
        assert expand_macros("--toc $UNKNOWN", {"SOURCEROOT": "/a"}) == "--toc $UNKNOWN"

    def test_every_occurrence_replaced(self) -> None:
        """All occurrences are substituted."""
        assert expand_macros("$A:$A", {"A": "1"}) == "1:1"


class TestOptionsFor:
    """Tests for per-file resolution."""

    def test_first_matching_group_wins(self) -> None:
        """The first group whose pattern matches is used."""
        options = parse_options("::draft::\n--draft\n::.*::\n--final\n")

        assert options.options_for(Path("/src/draft-post.md")) == " --draft"
        assert options.options_for(Path("/src/post.md")) == " --final"

    def test_no_match_names_file(self) -> None:
        """No matching group raises with the file path in the message."""
        options = parse_options("::\\.txt$::\n--toc\n")

        with pytest.raises(OptionsResolutionError, match="post.md") as exc_info:
            options.options_for(Path("/src/post.md"))

        assert exc_info.value.path == Path("/src/post.md")
        assert len(exc_info.value.groups) == 1
        assert r"\.txt$" in str(exc_info.value)

    def test_empty_options_fail(self) -> None:
        """With no options at all, nothing resolves."""
        with pytest.raises(OptionsResolutionError):
            DirectoryOptions().options_for(Path("post.md"))


class TestOptionsResolver:
    """Tests for nearest-ancestor inheritance."""

    def test_local_file_is_parsed(self, tree: Path, resolver: OptionsResolver) -> None:
        """A directory's own options file is used."""
        (tree / "src" / ".pandoc_options").write_text("--toc\n")

        options = resolver.resolve(tree / "src", tree / "site")

        assert options.groups[0].options == " --toc"

    def test_missing_everywhere_is_empty(self, tree: Path, resolver: OptionsResolver) -> None:
        """No options file here or in a visited parent yields empty options."""
        assert not resolver.resolve(tree / "src", tree / "site")

    def test_child_inherits_with_own_macros(self, tree: Path, resolver: OptionsResolver) -> None:
        """An inherited list expands SOURCEDIR/TARGETDIR for the child."""
        (tree / "src" / ".pandoc_options").write_text("--css=$SOURCEDIR/style.css -o $TARGETDIR\n")
        child_src = tree / "src" / "posts"
        child_src.mkdir()

        parent = resolver.resolve(tree / "src", tree / "site")
        child = resolver.resolve(child_src, tree / "site" / "posts")

        assert parent.groups[0].options == f" --css={tree / 'src'}/style.css -o {tree / 'site'}"
        assert child.groups[0].options == f" --css={child_src}/style.css -o {tree / 'site' / 'posts'}"

    def test_cache_stays_unexpanded(self, tree: Path, resolver: OptionsResolver) -> None:
        """The cached list keeps its $MACROS and is shared with the child."""
        (tree / "src" / ".pandoc_options").write_text("--css=$SOURCEDIR/style.css\n")
        child_src = tree / "src" / "posts"
        child_src.mkdir()

        resolver.resolve(tree / "src", tree / "site")
        resolver.resolve(child_src, tree / "site" / "posts")

        cached_parent = resolver.cached(tree / "src")
        assert cached_parent is not None
        assert resolver.cached(child_src) is cached_parent
        assert "$SOURCEDIR" in cached_parent.groups[0].options

    def test_grandchild_inherits_through_child(self, tree: Path, resolver: OptionsResolver) -> None:
        """Inheritance is memoized down the tree, one level at a time."""
        (tree / "src" / ".pandoc_options").write_text("--toc\n")
        child = tree / "src" / "a"
        grandchild = child / "b"
        grandchild.mkdir(parents=True)

        resolver.resolve(tree / "src", tree / "site")
        resolver.resolve(child, tree / "site" / "a")
        options = resolver.resolve(grandchild, tree / "site" / "a" / "b")

        assert options.groups[0].options == " --toc"

    def test_unvisited_parent_is_not_searched(self, tree: Path, resolver: OptionsResolver) -> None:
        """Without a cached parent the resolver does not walk up the tree."""
        (tree / "src" / ".pandoc_options").write_text("--toc\n")
        child = tree / "src" / "a"
        child.mkdir()

        assert not resolver.resolve(child, tree / "site" / "a")

    def test_child_file_overrides_parent(self, tree: Path, resolver: OptionsResolver) -> None:
        """A child's own file replaces the inherited list."""
        (tree / "src" / ".pandoc_options").write_text("--toc\n")
        child = tree / "src" / "a"
        child.mkdir()
        (child / ".pandoc_options").write_text("--number-sections\n")

        resolver.resolve(tree / "src", tree / "site")
        options = resolver.resolve(child, tree / "site" / "a")

        assert options.groups[0].options == " --number-sections"

    def test_root_macros_and_extras(self, tree: Path) -> None:
        """ROOTDIR, SOURCEROOT, TARGETROOT and caller extras expand."""
        resolver = OptionsResolver(tree / "src", tree / "site", tree, extra_macros={"THEME": "dark"})
        (tree / "src" / ".pandoc_options").write_text("$ROOTDIR $SOURCEROOT $TARGETROOT $THEME\n")

        options = resolver.resolve(tree / "src", tree / "site")

        assert options.groups[0].options == f" {tree} {tree / 'src'} {tree / 'site'} dark"

    def test_custom_filename(self, tree: Path) -> None:
        """The options filename is configurable."""
        resolver = OptionsResolver(tree / "src", tree / "site", tree, filename="options.txt")
        (tree / "src" / "options.txt").write_text("--toc\n")

        assert resolver.resolve(tree / "src", tree / "site").groups[0].options == " --toc"


class TestMalformedOptionFiles:
    """Unreadable or invalid option files are configuration errors."""

    def test_invalid_group_pattern_names_line(self) -> None:
        """A group header that is not a regex reports the file and line."""
        with pytest.raises(ConfigError, match=r"opts:3: invalid pattern '\[unclosed'"):
            parse_options("# header\n--toc\n::[unclosed::\n--css=a.css\n", origin=Path("opts"))

    def test_invalid_pattern_in_resolved_file(self, tree: Path, resolver: OptionsResolver) -> None:
        """The resolver reports the options file path."""
        (tree / "src" / ".pandoc_options").write_text("::[unclosed::\n--toc\n")

        with pytest.raises(ConfigError, match=r"\.pandoc_options:1"):
            resolver.resolve(tree / "src", tree / "site")

    def test_undecodable_file(self, tree: Path, resolver: OptionsResolver) -> None:
        """A file that is not UTF-8 is reported, not raised as a decode error."""
        (tree / "src" / ".pandoc_options").write_bytes(b"--toc \xff\xfe\n")

        with pytest.raises(ConfigError, match="Cannot read"):
            resolver.resolve(tree / "src", tree / "site")
