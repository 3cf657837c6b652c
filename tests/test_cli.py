"""Tests for the docker-zfs-plugin CLI."""
import json

from typer.testing import CliRunner

from zfsvol.cli import app

runner = CliRunner()


def test_serve_requires_root_dataset(monkeypatch, tmp_path):
    """serve fails without a root dataset."""
    monkeypatch.delenv('ZFSVOL_ROOT_DATASET', raising=False)

    result = runner.invoke(app, ['serve', '--volume-base', str(tmp_path)])

    assert result.exit_code == 1
    assert "root-dataset" in result.stdout


def test_serve_corrupt_state(monkeypatch, tmp_path):
    """A corrupt state file stops the plugin before serving."""
    monkeypatch.setenv('ZFSVOL_MOCK', '1')
    (tmp_path / 'state.json').write_text('not json')

    result = runner.invoke(app, [
        'serve',
        '--root-dataset', 'pool/docker',
        '--volume-base', str(tmp_path),
        '--log-file', str(tmp_path / 'plugin.log'),
    ])

    assert result.exit_code == 1
    assert "Failed to create ZFS driver" in result.stdout


def test_serve_bad_config_file(tmp_path):
    config = tmp_path / 'plugin.yml'
    config.write_text('root_dataset: pool/docker\nunknown_key: 1\n')

    result = runner.invoke(app, ['serve', '--config', str(config)])

    assert result.exit_code == 1
    assert "Invalid config file" in result.stdout


def test_state_empty(tmp_path):
    result = runner.invoke(app, ['state', '--volume-base', str(tmp_path)])

    assert result.exit_code == 0
    assert "No volumes recorded" in result.stdout


def test_state_table(tmp_path):
    (tmp_path / 'state.json').write_text(json.dumps({
        'data': {'datasetFQN': 'pool/docker/volumes/data'},
    }))

    result = runner.invoke(app, ['state', '--volume-base', str(tmp_path)])

    assert result.exit_code == 0
    assert "data" in result.stdout
    assert "pool/docker/volumes/data" in result.stdout


def test_state_json(tmp_path):
    (tmp_path / 'state.json').write_text(json.dumps({
        'data': {'datasetFQN': 'pool/docker/volumes/data'},
    }))

    result = runner.invoke(app, ['state', '--volume-base', str(tmp_path), '--json'])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {'data': {'datasetFQN': 'pool/docker/volumes/data'}}
