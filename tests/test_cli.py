import pytest
from hexbin.cli import CONFIG_ENV, hex2bin, load_config, main


SAMPLE = (':020000040001F9\n'
          ':0200000011220000\n'
          ':02000400334400\n'
          ':00000001FF\n')


@pytest.fixture
def hexfile(tmp_path):
    path = tmp_path / 'firmware.hex'
    path.write_text(SAMPLE)
    return path


def test_convert_file(hexfile, tmp_path):
    output = tmp_path / 'firmware.bin'
    main([str(hexfile), str(output)])
    assert output.read_bytes() == b'\x11\x22\xff\xff\x33\x44'


def test_fill_option(hexfile, tmp_path):
    output = tmp_path / 'firmware.bin'
    main(['-f', '0x00', str(hexfile), str(output)])
    assert output.read_bytes() == b'\x11\x22\x00\x00\x33\x44'


def test_report(hexfile, tmp_path, capsys):
    output = tmp_path / 'firmware.bin'
    main(['-r', str(hexfile), str(output)])
    err = capsys.readouterr().err
    assert 'Binary file:  firmware.bin' in err
    assert '[00010000..00010005], 6 bytes' in err


def test_missing_input(tmp_path, capsys):
    output = tmp_path / 'firmware.bin'
    with pytest.raises(SystemExit) as exc_info:
        main([str(tmp_path / 'nofile.hex'), str(output)])
    assert exc_info.value.code == 1
    assert 'does not exist' in capsys.readouterr().err
    assert not output.exists()


@pytest.mark.parametrize('content', [
    ':0100000001FE\n:ZZ\n:00000001FF\n',
    ':10000000AA\n',
    ':00000001FF\n',
    '',
])
def test_failure_produces_no_output(content, tmp_path):
    source = tmp_path / 'bad.hex'
    source.write_text(content)
    output = tmp_path / 'bad.bin'
    with pytest.raises(SystemExit) as exc_info:
        main([str(source), str(output)])
    assert exc_info.value.code == 1
    assert not output.exists()
    assert sorted(p.name for p in tmp_path.iterdir()) == ['bad.hex']


def test_invalid_fill(hexfile, tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        main(['-f', 'XYZ', str(hexfile), str(tmp_path / 'out.bin')])
    assert exc_info.value.code == 1


def test_interactive(hexfile, tmp_path, monkeypatch):
    output = tmp_path / 'firmware.bin'
    answers = iter([str(hexfile), str(output), '5a'])
    monkeypatch.setattr('builtins.input', lambda prompt='': next(answers))
    main([])
    assert output.read_bytes() == b'\x11\x22\x5a\x5a\x33\x44'


def test_interactive_default_fill(hexfile, tmp_path, monkeypatch):
    output = tmp_path / 'firmware.bin'
    answers = iter([str(hexfile), str(output), ''])
    monkeypatch.setattr('builtins.input', lambda prompt='': next(answers))
    main([])
    assert output.read_bytes() == b'\x11\x22\xff\xff\x33\x44'


def test_config_file(hexfile, tmp_path, capsys):
    config = tmp_path / 'hex2bin.ini'
    config.write_text('[hex2bin]\nfill = 0x00\nreport = yes\n')
    output = tmp_path / 'firmware.bin'
    main(['-c', str(config), str(hexfile), str(output)])
    assert output.read_bytes() == b'\x11\x22\x00\x00\x33\x44'
    assert 'Memory range:' in capsys.readouterr().err


def test_config_from_environment(hexfile, tmp_path, monkeypatch):
    config = tmp_path / 'hex2bin.ini'
    config.write_text('[hex2bin]\nfill = 11\n')
    monkeypatch.setenv(CONFIG_ENV, str(config))
    output = tmp_path / 'firmware.bin'
    main([str(hexfile), str(output)])
    assert output.read_bytes() == b'\x11\x22\x11\x11\x33\x44'


def test_option_overrides_config(hexfile, tmp_path):
    config = tmp_path / 'hex2bin.ini'
    config.write_text('[hex2bin]\nfill = 11\n')
    output = tmp_path / 'firmware.bin'
    main(['-c', str(config), '-f', 'EE', str(hexfile), str(output)])
    assert output.read_bytes() == b'\x11\x22\xee\xee\x33\x44'


def test_load_config(tmp_path):
    assert load_config(None) == {'fill': None, 'report': False}
    with pytest.raises(ValueError):
        load_config(str(tmp_path / 'missing.ini'))


def test_log_file(hexfile, tmp_path):
    logfile = tmp_path / 'hex2bin.log'
    output = tmp_path / 'firmware.bin'
    main(['-v', '-l', str(logfile), str(hexfile), str(output)])
    log = logfile.read_text()
    assert 'Extended linear address: 0x00010000' in log
    assert 'Conversion done, output file size: 6 bytes' in log


def test_hex2bin(hexfile, tmp_path):
    output = tmp_path / 'sub' / 'firmware.bin'
    builder = hex2bin(str(hexfile), str(output), 0x00)
    assert builder.baseaddr == 0x00010000
    assert builder.size == 6
    assert output.read_bytes() == builder.getvalue()


def test_interactive_missing_output(hexfile, tmp_path, monkeypatch):
    output = tmp_path / 'firmware.bin'
    prompts = []
    answers = iter([str(output), '00'])

    def _input(prompt=''):
        prompts.append(prompt)
        return next(answers)

    monkeypatch.setattr('builtins.input', _input)
    main([str(hexfile)])
    assert output.read_bytes() == b'\x11\x22\x00\x00\x33\x44'
    assert not any(prompt.startswith('HEX file') for prompt in prompts)
