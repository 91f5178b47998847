"""
Tests for the carematch command line entry point.
"""
import json
import os
from unittest.mock import patch

import pytest

import main

CONFIG_PATH = os.path.join(os.path.dirname(__file__), "..", "..", "config.yaml")


def _run(argv, env):
    with patch('sys.argv', ['carematch', '--config', CONFIG_PATH] + argv), \
            patch.dict(os.environ, env), \
            patch('core.cache.candidate_cache.Redis') as cache_redis, \
            patch('history.dispatcher.Redis') as queue_redis:
        cache_redis.from_url.side_effect = Exception("Connection refused")
        queue_redis.from_url.side_effect = Exception("Connection refused")
        main.main()


class TestCli:

    def test_01_simulate_prints_summary(self, tmp_path, capsys):
        env = {"DATABASE_URL": f"sqlite:///{tmp_path / 'cli.db'}"}
        _run(['simulate', '--assessments', '4', '--candidates', '30', '--seed', '3'], env)

        summary = json.loads(capsys.readouterr().out)
        assert summary['total_assessments'] == 4
        assert summary['total_candidates'] == 30
        assert summary['strategy'] == 'HEALTH_BASED'

    @pytest.mark.db
    def test_02_unknown_assessment_exits_with_code_2(self, tmp_path):
        env = {"DATABASE_URL": f"sqlite:///{tmp_path / 'cli.db'}"}
        _run(['init-db'], env)

        with pytest.raises(SystemExit) as exc_info:
            _run(['match', 'missing-assessment'], env)

        assert exc_info.value.code == 2

    @pytest.mark.db
    def test_03_report_on_empty_history(self, tmp_path, capsys):
        env = {"DATABASE_URL": f"sqlite:///{tmp_path / 'cli.db'}"}
        _run(['init-db'], env)
        capsys.readouterr()

        _run(['report', '--days', '7', '--bucket', 'WEEK'], env)

        report = json.loads(capsys.readouterr().out)
        assert report['total'] == 0
        assert report['success_rate'] == 0.0
        assert report['top_k'] == 3
        assert report['trend'] == []
        assert report['performance'] == []
