import gzip
import os

import pytest

from als_inputs.file_source import iter_lines, list_input_files


def _touch(path, mtime, text=''):
    path.write_text(text)
    os.utime(path, (mtime, mtime))


class TestListInputFiles:
    def test_orders_by_modification_time(self, tmp_path):
        _touch(tmp_path / 'a.csv', 300)
        _touch(tmp_path / 'b.csv', 100)
        _touch(tmp_path / 'c.csv', 200)
        names = [os.path.basename(p) for p in list_input_files(str(tmp_path))]
        assert names == ['b.csv', 'c.csv', 'a.csv']

    def test_equal_times_fall_back_to_name(self, tmp_path):
        _touch(tmp_path / 'z.csv', 100)
        _touch(tmp_path / 'y.csv', 100)
        names = [os.path.basename(p) for p in list_input_files(str(tmp_path))]
        assert names == ['y.csv', 'z.csv']

    def test_skips_hidden_files_and_directories(self, tmp_path):
        _touch(tmp_path / 'data.csv', 100)
        _touch(tmp_path / '.part.crc', 100)
        _touch(tmp_path / '_SUCCESS', 100)
        (tmp_path / 'nested').mkdir()
        names = [os.path.basename(p) for p in list_input_files(str(tmp_path))]
        assert names == ['data.csv']

    def test_missing_directory_is_empty(self, tmp_path):
        assert list_input_files(str(tmp_path / 'absent')) == []

    def test_empty_directory_is_empty(self, tmp_path):
        assert list_input_files(str(tmp_path)) == []


class TestIterLines:
    def test_plain_file(self, tmp_path):
        path = tmp_path / 'a.csv'
        path.write_bytes(b'u1,i1\r\nu2,i2,\n')
        assert list(iter_lines(str(path))) == ['u1,i1', 'u2,i2,']

    def test_gzip_file(self, tmp_path):
        path = tmp_path / 'a.csv.gz'
        with gzip.open(path, 'wt', encoding='utf-8') as f:
            f.write('u1,i1,2.0\nu1,i2\n')
        assert list(iter_lines(str(path))) == ['u1,i1,2.0', 'u1,i2']

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            list(iter_lines(str(tmp_path / 'gone.csv')))
