import gzip
import io
import logging
import warnings

import pytest
from cigarstats import run, main, __version__
from cigarstats.cigar import INT64_MAX

PAF = (
    b'q1\t1000\t0\t100\t+\tt1\t2000\t50\t150\t95\t100\t60\tNM:i:5\tcg:Z:10=2X3I5=\n'
    b'q2\t500\t5\t25\t-\tt2\t800\t10\t30\t20\t20\t60\tcg:Z:' + str(INT64_MAX + 1).encode() + b'D\n'
    b'q3\t500\t5\t105\t-\tt2\t800\t10\t110\t100\t100\t60\tcg:Z:100=\n'
)
ROW_Q1 = 'q1\t0\t100\t+\tt1\t50\t150\t15\t2\t3\t0\t2\t1\t1\t0\t10\t5\t7.50\t2\t2\t2.00\t3\t3\t3.00\t0\t0\t0.00'
ROW_Q3 = 'q3\t5\t105\t-\tt2\t10\t110\t100\t0\t0\t0\t1\t0\t0\t0\t100\t100\t100.00\t0\t0\t0.00\t0\t0\t0.00\t0\t0\t0.00'


@pytest.fixture
def paf(tmp_path):
    path = tmp_path / 'aln.paf'
    path.write_bytes(PAF)
    return path


class TestRun:
    def test_rows(self, paf, tmp_path):
        out = tmp_path / 'stats.tsv'
        with pytest.warns(Warning, match="Skipping record 'q2'"):
            assert run(paf, out) == 2
        lines = out.read_text().splitlines()
        assert lines[0].startswith('q.name\tq.start')
        assert lines[1:] == [ROW_Q1, ROW_Q3]

    def test_gzip_input_matches_plain(self, paf, tmp_path):
        gz = tmp_path / 'aln.paf.gz'
        gz.write_bytes(gzip.compress(PAF))
        plain_out, gz_out = io.BytesIO(), io.BytesIO()
        with pytest.warns(Warning):
            run(paf, plain_out)
        with pytest.warns(Warning):
            run(gz, gz_out)
        assert plain_out.getvalue() == gz_out.getvalue()

    def test_missing_input_writes_nothing(self, tmp_path):
        out = tmp_path / 'stats.tsv'
        with pytest.raises(FileNotFoundError):
            run(tmp_path / 'missing.paf', out)
        assert not out.exists()


class TestMain:
    def test_stdout(self, paf, capsysbinary):
        assert main(['-p', str(paf)]) == 0
        lines = capsysbinary.readouterr().out.decode().splitlines()
        assert lines[1:] == [ROW_Q1, ROW_Q3]

    def test_stdin(self, monkeypatch, tmp_path):
        monkeypatch.setattr('sys.stdin', io.TextIOWrapper(io.BytesIO(gzip.compress(PAF))))
        out = tmp_path / 'stats.tsv'
        assert main(['--paf', '-', '--output', str(out)]) == 0
        assert out.read_text().splitlines()[1:] == [ROW_Q1, ROW_Q3]

    def test_malformed_record_logged(self, paf, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            assert main(['-p', str(paf), '-o', str(tmp_path / 'stats.tsv')]) == 0
        assert "Skipping record 'q2'" in caplog.text

    def test_missing_file(self, tmp_path, caplog):
        assert main(['-p', str(tmp_path / 'missing.paf'), '-o', str(tmp_path / 'stats.tsv')]) == 1
        assert 'missing.paf' in caplog.text

    def test_corrupt_gzip(self, tmp_path):
        bad = tmp_path / 'bad.paf.gz'
        bad.write_bytes(gzip.compress(PAF)[:40])
        assert main(['-p', str(bad), '-o', str(tmp_path / 'stats.tsv')]) == 1

    def test_corrupt_deflate_stream(self, tmp_path, caplog):
        data = bytearray(gzip.compress(PAF))
        for i in range(20, 60): data[i] ^= 0xFF
        bad = tmp_path / 'bad.paf.gz'
        bad.write_bytes(bytes(data))
        assert main(['-p', str(bad), '-o', str(tmp_path / 'stats.tsv')]) == 1
        assert 'bad.paf.gz' in caplog.text

    def test_corrupt_stdin_named(self, monkeypatch, tmp_path, caplog):
        monkeypatch.setattr('sys.stdin', io.TextIOWrapper(io.BytesIO(gzip.compress(PAF)[:40])))
        assert main(['-p', '-', '-o', str(tmp_path / 'stats.tsv')]) == 1
        assert '<stdin>' in caplog.text

    def test_warnings_logged_on_every_call(self, paf, tmp_path, caplog, monkeypatch):
        original = warnings.showwarning
        out = str(tmp_path / 'stats.tsv')
        assert main(['-p', str(paf), '-o', out]) == 0
        monkeypatch.setattr(warnings, 'showwarning', original)  # As a test runner does between tests
        caplog.clear()
        with caplog.at_level(logging.WARNING):
            assert main(['-p', str(paf), '-o', out]) == 0
        assert "Skipping record 'q2'" in caplog.text

    def test_warning_routing_restored(self, paf, tmp_path):
        original = warnings.showwarning
        assert main(['-p', str(paf), '-o', str(tmp_path / 'stats.tsv')]) == 0
        assert warnings.showwarning is original

    def test_usage_error(self):
        with pytest.raises(SystemExit) as e:
            main([])
        assert e.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as e:
            main(['--version'])
        assert e.value.code == 0
        assert __version__ in capsys.readouterr().out
