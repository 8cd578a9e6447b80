from climgrid.spatial import cli


def test_cli_decodes_with_rows(capsys):
    rc = cli.main(['1', '412', '--rows', '18'])
    assert rc == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    idx, lat, lon = lines[0].split('\t')
    assert idx == '1'
    assert float(lat) == -85.0
    assert float(lon) == -120.0
    assert lines[1].split('\t') == ['412', '85.000000', '120.000000']


def test_cli_infers_rows(capsys):
    rc = cli.main(['1', '412'])
    assert rc == 0
    assert len(capsys.readouterr().out.strip().splitlines()) == 2


def test_cli_reports_bad_input(capsys):
    assert cli.main(['413', '--rows', '18']) == 2
    assert 'error' in capsys.readouterr().err
    assert cli.main(['1', '--rows', '17']) == 2
    assert 'even' in capsys.readouterr().err
