"""
Tests for the command-line entry point.
"""
import json
from unittest.mock import MagicMock, patch

import pytest

import main
from core.exceptions import RetrievalError
from core.models import Match, MatchResult


@pytest.fixture
def profile_file(tmp_path):
    path = tmp_path / "profile.json"
    path.write_text(json.dumps({"id": "p1", "sector": "Agriculture", "region": "Bretagne"}))
    return str(path)


@pytest.fixture
def context():
    ctx = MagicMock()
    ctx.engine.match.return_value = MatchResult(
        matches=[Match(subsidy_id="s1", match_score=72.0, success_probability=50.0, refined=True)],
        was_ai_refined=True,
    )
    ctx.engine.match_local.return_value = MatchResult()
    with patch("main.load_config"), patch("main.AppContext") as app_context:
        app_context.build.return_value = ctx
        yield ctx


def test_prints_matches_as_json(profile_file, context, capsys):
    code = main.main([profile_file, "--limit", "5", "--account", "acct", "--plan", "business"])

    assert code == 0
    context.engine.match.assert_called_once_with(
        {"id": "p1", "sector": "Agriculture", "region": "Bretagne"},
        limit=5,
        force_refresh=False,
        account_id="acct",
        plan="business",
    )
    output = json.loads(capsys.readouterr().out)
    assert output["was_ai_refined"] is True
    assert output["matches"][0]["subsidy_id"] == "s1"


def test_local_only(profile_file, context):
    assert main.main([profile_file, "--local-only"]) == 0

    context.engine.match_local.assert_called_once()
    context.engine.match.assert_not_called()


def test_matching_error_exit_code(profile_file, context):
    context.engine.match.side_effect = RetrievalError("catalog unreachable")

    assert main.main([profile_file]) == 1
