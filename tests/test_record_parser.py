import pickle

import pytest

from als_inputs.delimited import decode_line
from als_inputs.id_mapping import StringIDMapping
from als_inputs.record_parser import (
    Accumulate,
    RecordParseError,
    RecordParser,
    Remove,
    parse_value,
)


class TestDecodeLine:
    def test_plain_fields(self):
        assert decode_line('u1,i1,2.0') == ['u1', 'i1', '2.0']

    def test_trailing_empty_field_is_kept(self):
        assert decode_line('u1,i1,') == ['u1', 'i1', '']

    def test_quoted_delimiter(self):
        assert decode_line('"a,b",i1\n') == ['a,b', 'i1']

    def test_blank_line(self):
        assert decode_line('') == []
        assert decode_line('\r\n') == []


class TestParseValue:
    def test_absent_value_counts_one(self):
        assert parse_value(None) == Accumulate(1.0)

    def test_empty_value_removes(self):
        assert parse_value('') is Remove

    def test_numeric_value(self):
        assert parse_value('-2.5') == Accumulate(-2.5)

    @pytest.mark.parametrize('token', ['abc', '1.0.0', 'nan', 'inf', '-Infinity', '1_0', '\u0663', '\uff11.5'])
    def test_bad_values_are_fatal(self, token):
        with pytest.raises(RecordParseError):
            parse_value(token)


class TestInboundParser:
    def test_assigns_ids_in_first_seen_order(self):
        mapping = StringIDMapping()
        parser = RecordParser(mapping, inbound=True)
        assert parser.parse_line('u1,i1,2.0') == (0, 1, Accumulate(2.0))
        assert parser.parse_line('u2,i1') == (2, 1, Accumulate(1.0))
        assert mapping.to_string(2) == 'u2'

    def test_inbound_ignores_decay(self):
        parser = RecordParser(StringIDMapping(), inbound=True, decay_factor=0.5)
        assert parser.parse_line('u1,i1,4.0')[2] == Accumulate(4.0)

    def test_too_few_fields(self):
        parser = RecordParser(StringIDMapping(), inbound=True)
        with pytest.raises(RecordParseError):
            parser.parse_line('u1')

    def test_extra_fields_ignored(self):
        parser = RecordParser(StringIDMapping(), inbound=True)
        assert parser.parse_line('u1,i1,3,extra')[2] == Accumulate(3.0)

    def test_blank_line_gives_none(self):
        assert RecordParser(StringIDMapping(), inbound=True).parse_line('') is None


class TestHistoricalParser:
    def test_decays_accumulated_value(self):
        parser = RecordParser(StringIDMapping(), inbound=False, decay_factor=0.5)
        assert parser.parse_line('1,2,4.0') == (1, 2, Accumulate(2.0))

    def test_decays_implicit_value(self):
        parser = RecordParser(StringIDMapping(), inbound=False, decay_factor=0.25)
        assert parser.parse_line('1,2') == (1, 2, Accumulate(0.25))

    def test_removal_not_decayed(self):
        parser = RecordParser(StringIDMapping(), inbound=False, decay_factor=0.5)
        assert parser.parse_line('1,2,')[2] is Remove

    def test_does_not_touch_mapping(self):
        mapping = StringIDMapping()
        RecordParser(mapping, inbound=False).parse_line('7,8,1.0')
        assert len(mapping) == 0

    def test_signed_ids_and_padded_value(self):
        parser = RecordParser(StringIDMapping(), inbound=False)
        assert parser.parse_line('-3,+4, 2.5 ') == (-3, 4, Accumulate(2.5))

    @pytest.mark.parametrize('line', [
        'u1,2,1.0', '1,i2,1.0', '1.5,2', '1_000,2,1.0', ' 7 ,2,1.0',
        '\u0663,2,1.0', '1,2,1_0', '9223372036854775808,2',
    ])
    def test_non_numeric_ids_are_fatal(self, line):
        parser = RecordParser(StringIDMapping(), inbound=False)
        with pytest.raises(RecordParseError):
            parser.parse_line(line)


class TestUpdateTypes:
    def test_remove_is_singleton_after_pickling(self):
        assert pickle.loads(pickle.dumps(Remove)) is Remove

    def test_parse_error_is_value_error(self):
        error = RecordParseError('Bad value', 'part-0.csv', 3)
        assert isinstance(error, ValueError)
        assert str(error) == 'part-0.csv:3: Bad value'
        assert error.line_number == 3
