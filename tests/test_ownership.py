"""Tests for CODEOWNERS parsing, matching and repository exclusions."""

from __future__ import annotations

from pr_advisor.confidence import compute_team_coverage
from pr_advisor.exclusions import (
    load_excluded_reviewers,
    parse_reviewer_config,
    scan_exclude_list,
)
from pr_advisor.models import OwnershipRule, RankedCandidate
from pr_advisor.ownership import (
    expand_braces,
    glob_match,
    load_ownership_rules,
    normalize_pattern,
    owners_for_file,
    parse_codeowners,
)
from pr_advisor.sources import DataSourceError

CODEOWNERS = """\
# Default owners
*.ts        @frontend-lead

src/api/*   @alice @org/api-team   # API owners
/docs/*.md  @writer
scripts/    @dependabot[bot]
lonely-pattern
"""


class _FileSource:
    """Serves repository files from a dict; listed paths fail."""

    def __init__(self, files: dict[str, str], failing: set[str] | None = None) -> None:
        self._files = files
        self._failing = failing or set()
        self.requested: list[tuple[str, str | None]] = []

    def fetch_file_text(self, path: str, ref: str | None = None) -> str | None:
        self.requested.append((path, ref))
        if path in self._failing:
            raise DataSourceError(f"boom: {path}")
        return self._files.get(path)


# ── Parsing ─────────────────────────────────────────────────────────────────


def test_parse_codeowners_rules_in_file_order() -> None:
    rules = parse_codeowners(CODEOWNERS)
    assert [r.pattern for r in rules] == ["*.ts", "src/api/*", "/docs/*.md"]


def test_parse_codeowners_strips_at_and_inline_comment() -> None:
    api = parse_codeowners(CODEOWNERS)[1]
    assert api.owners == ("alice", "org/api-team")
    assert api.teams == ("org/api-team",)


def test_parse_codeowners_drops_bot_only_rules() -> None:
    patterns = [r.pattern for r in parse_codeowners(CODEOWNERS)]
    assert "scripts/" not in patterns
    assert "lonely-pattern" not in patterns


def test_parse_codeowners_empty() -> None:
    assert parse_codeowners(None) == []
    assert parse_codeowners("\n# only comments\n") == []


# ── Matching ────────────────────────────────────────────────────────────────


def test_normalize_pattern() -> None:
    assert normalize_pattern("/docs/*.md") == "docs/*.md"
    assert normalize_pattern("src/api/*") == "**/src/api/*"


def test_glob_star_stays_in_segment() -> None:
    assert glob_match("src/api/users.ts", "**/src/api/*")
    assert not glob_match("src/api/v2/users.ts", "**/src/api/*")
    assert glob_match("src/api/v2/users.ts", "**/src/api/**")


def test_glob_matches_at_any_depth_and_dotfiles() -> None:
    assert glob_match("packages/web/src/api/users.ts", "**/src/api/*")
    assert glob_match(".github/workflows/ci.yml", "**/*.yml")
    assert glob_match(".env", "**/*")


def test_glob_base_name_fallback() -> None:
    assert glob_match("deep/nested/Makefile", "Makefile")
    assert not glob_match("deep/nested/Makefile.am", "Makefile")


def test_anchored_pattern_only_matches_root() -> None:
    rules = [OwnershipRule("/docs/*.md", ("writer",))]
    assert owners_for_file(rules, "docs/guide.md") == ("writer",)
    assert owners_for_file(rules, "pkg/docs/guide.md") == ()


def test_single_matching_rule_returns_its_owners() -> None:
    rules = parse_codeowners(CODEOWNERS)
    assert owners_for_file(rules, "web/index.ts") == ("frontend-lead",)


def test_last_matching_rule_wins() -> None:
    rules = parse_codeowners(CODEOWNERS)
    assert owners_for_file(rules, "src/api/users.ts") == ("alice", "org/api-team")


def test_last_matching_rule_wins_even_when_broader() -> None:
    rules = [
        OwnershipRule("src/api/*", ("alice",)),
        OwnershipRule("*", ("catchall",)),
    ]
    assert owners_for_file(rules, "src/api/users.ts") == ("catchall",)


def test_unmatched_file_has_no_owners() -> None:
    rules = parse_codeowners(CODEOWNERS)
    assert owners_for_file(rules, "README.rst") == ()
    assert owners_for_file([], "anything.ts") == ()


# ── Loading ─────────────────────────────────────────────────────────────────


def test_load_rules_uses_first_found_file_at_ref() -> None:
    source = _FileSource({"CODEOWNERS": "* @root", "docs/CODEOWNERS": "* @docs"})
    rules = load_ownership_rules(source, "abc123")
    assert rules[0].owners == ("root",)
    assert source.requested == [(".github/CODEOWNERS", "abc123"), ("CODEOWNERS", "abc123")]


def test_load_rules_survives_failed_lookup() -> None:
    source = _FileSource({"docs/CODEOWNERS": "* @docs"}, failing={".github/CODEOWNERS"})
    assert load_ownership_rules(source)[0].owners == ("docs",)


def test_load_rules_without_file() -> None:
    assert load_ownership_rules(_FileSource({})) == []


# ── Team coverage ───────────────────────────────────────────────────────────


def test_team_coverage_counts_roster_members() -> None:
    rules = parse_codeowners("src/* @org/api @Alice\nlib/* @org/api @dan")
    suggestions = [RankedCandidate("alice", 10), RankedCandidate("bob", 5)]
    coverage = compute_team_coverage(suggestions, rules)
    assert len(coverage) == 1
    assert coverage[0].team == "org/api"
    assert coverage[0].count == 1
    assert coverage[0].total == 2


def test_team_coverage_without_teams() -> None:
    rules = parse_codeowners("src/* @alice")
    assert compute_team_coverage([RankedCandidate("alice", 1)], rules) == []


# ── Reviewer config exclusions ──────────────────────────────────────────────


def test_reviewer_config_inline_list() -> None:
    assert parse_reviewer_config('exclude: ["Alice", bob]\n') == {"alice", "bob"}


def test_reviewer_config_block_list() -> None:
    text = "exclude:\n  - '@Carol'\n  - dave\nother: 1\n"
    assert parse_reviewer_config(text) == {"carol", "dave"}


def test_reviewer_config_comma_string() -> None:
    assert parse_reviewer_config("exclude: erin, frank") == {"erin", "frank"}


def test_reviewer_config_malformed_is_empty() -> None:
    assert parse_reviewer_config("exclude: [a, b") == set()
    assert parse_reviewer_config("- just\n- a list\n") == set()
    assert parse_reviewer_config("exclude: 42") == set()
    assert parse_reviewer_config(None) == set()


def test_excluded_reviewers_merge_inputs_and_file() -> None:
    source = _FileSource({".github/reviewer-config.yml": "exclude: [bob]"})
    assert load_excluded_reviewers(source, "sha", ["Alice"]) == {"alice", "bob"}


def test_excluded_reviewers_survive_failed_lookup() -> None:
    source = _FileSource({}, failing={".github/reviewer-config.yml"})
    assert load_excluded_reviewers(source, None, ["alice"]) == {"alice"}


def test_reviewer_config_unquoted_at_inline_list() -> None:
    assert parse_reviewer_config("exclude: [@alice, bob]\n") == {"alice", "bob"}


def test_reviewer_config_unquoted_at_block_list() -> None:
    text = "exclude:\n  - @alice\n  - 'bob'\nlabels:\n  - @ignored\n"
    assert parse_reviewer_config(text) == {"alice", "bob"}


def test_reviewer_config_scan_without_exclude_key() -> None:
    assert scan_exclude_list("reviewers: [@alice\n") == set()


# ── Brace alternatives ──────────────────────────────────────────────────────


def test_expand_braces() -> None:
    assert expand_braces("*.{js,ts}") == ["*.js", "*.ts"]
    assert expand_braces("{src,lib}/*.{a,b}") == ["src/*.a", "src/*.b", "lib/*.a", "lib/*.b"]
    assert expand_braces("{a,{b,c}}") == ["a", "b", "a", "c"]
    assert expand_braces("literal{x}.ts") == ["literal{x}.ts"]


def test_brace_pattern_owns_each_alternative() -> None:
    rules = parse_codeowners("*.{js,ts} @alice\n/{docs,guides}/** @writer\n")
    assert owners_for_file(rules, "src/a.ts") == ("alice",)
    assert owners_for_file(rules, "src/a.js") == ("alice",)
    assert owners_for_file(rules, "src/a.py") == ()
    assert owners_for_file(rules, "guides/setup.md") == ("writer",)
