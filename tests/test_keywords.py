"""
Unit tests for sigfile - Extended header keyword records

Covers both representations (dict and list), duplicate tags, array values,
and the handling of records that cannot be decoded.
"""

import logging
import os
import sys
from collections import Counter

import pytest

# Add the lib directory to the path to import sigfile
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))) + "/lib")
from sigfile import DEFAULT_OPTIONS, Keyword, unpack_keywords
from sigfile.keywords import is_mapping_type, read_keywords

from sample_files import OTHER_REP, keyword


@pytest.fixture
def keyword_region():
    """Extended header with one keyword of every supported format and two duplicates."""
    return b''.join([
        keyword('B_TEST', 'B', 123),
        keyword('I_TEST', 'I', 1337),
        keyword('L_TEST', 'L', 113355),
        keyword('X_TEST', 'X', 987654321),
        keyword('F_TEST', 'F', 0.12345),
        keyword('D_TEST', 'D', 9.87654321),
        keyword('O_TEST', 'O', 255),
        keyword('STRING_TEST', 'A', 'Hello World'),
        keyword('B_TEST', 'B', 99),
        keyword('STRING_TEST', 'A', 'Goodbye World'),
    ])

EXPECTED_DICT = {
    'B_TEST': 123,
    'I_TEST': 1337,
    'L_TEST': 113355,
    'X_TEST': 987654321,
    'F_TEST': 0.12345000356435776,
    'D_TEST': 9.87654321,
    'O_TEST': 255,
    'STRING_TEST': 'Hello World',
    'B_TEST2': 99,
    'STRING_TEST2': 'Goodbye World',
}

@pytest.mark.parametrize("ext_header_type", ['dict', 'json', 'DICT', 'JSON', 'XMTable', {}, None])
def test_mapping_representation(keyword_region, ext_header_type):
    """Test every option value that selects the dict representation."""
    little_endian = sys.byteorder == 'little'
    ext_header = unpack_keywords(keyword_region, little_endian, ext_header_type)
    assert ext_header == EXPECTED_DICT

def test_default_representation(keyword_region):
    """Test that the dict representation is the default."""
    assert DEFAULT_OPTIONS['ext_header_type'] == 'dict'
    assert unpack_keywords(keyword_region, sys.byteorder == 'little') == EXPECTED_DICT

def test_list_representation(keyword_region):
    """Test that the list keeps every record verbatim, duplicates included."""
    ext_header = unpack_keywords(keyword_region, sys.byteorder == 'little', 'list')
    assert isinstance(ext_header, list)
    assert [kw.tag for kw in ext_header] == [
        'B_TEST', 'I_TEST', 'L_TEST', 'X_TEST', 'F_TEST', 'D_TEST', 'O_TEST',
        'STRING_TEST', 'B_TEST', 'STRING_TEST']
    assert ext_header[8] == Keyword('B_TEST', 99)
    assert ext_header[9].value == 'Goodbye World'

def test_representations_agree(keyword_region):
    """Test that both representations hold the same (tag, value) pairs modulo renaming."""
    little_endian = sys.byteorder == 'little'
    as_list = unpack_keywords(keyword_region, little_endian, 'list')
    as_dict = unpack_keywords(keyword_region, little_endian, 'dict')
    assert len(as_list) == len(as_dict) == 10

    renamed = []
    seen = Counter()
    for tag, value in as_list:
        seen[tag] += 1
        renamed.append((tag if seen[tag] == 1 else f"{tag}{seen[tag]}", value))
    assert renamed == list(as_dict.items())

def test_other_option_values_select_list():
    """Test that unrecognized option values select the list representation."""
    assert is_mapping_type('dict')
    assert is_mapping_type({})
    assert not is_mapping_type('list')
    assert not is_mapping_type('Dict')
    assert not is_mapping_type({'a': 1})
    assert not is_mapping_type([])

def test_repeated_tags_numbered():
    """Test that the n-th occurrence of a tag is stored as tag + n."""
    region = b''.join(keyword('T', 'L', i) for i in range(4))
    assert unpack_keywords(region, sys.byteorder == 'little') == {'T': 0, 'T2': 1, 'T3': 2, 'T4': 3}

def test_array_values():
    """Test that payloads holding several scalars become lists in order."""
    region = keyword('I_ARRAY_TEST', 'I', [1, 2, 3, 4]) + keyword('EMPTY', 'D', b'')
    ext_header = unpack_keywords(region, sys.byteorder == 'little')
    assert ext_header['I_ARRAY_TEST'] == [1, 2, 3, 4]
    assert ext_header['EMPTY'] == []

def test_header_byte_order():
    """Test records written in the opposite byte order of the host."""
    region = keyword('D_TEST', 'D', [1.5, -2.0], rep=OTHER_REP) + keyword('S', 'A', 'abc', rep=OTHER_REP)
    ext_header = unpack_keywords(region, sys.byteorder != 'little')
    assert ext_header == {'D_TEST': [1.5, -2.0], 'S': 'abc'}

def test_text_kept_verbatim():
    """Test that text payloads keep trailing spaces and tags ignore padding."""
    region = keyword('PAD', 'A', 'value   ', padding=13)
    assert unpack_keywords(region, sys.byteorder == 'little') == {'PAD': 'value   '}

def test_unsupported_format_skipped(caplog):
    """Test that a record with an unknown format is skipped with a warning."""
    region = keyword('GOOD', 'L', 7) + keyword('BAD', 'Z', b'\x00' * 8) + keyword('BITS', 'P', b'\xff') \
        + keyword('ALSO_GOOD', 'A', 'x')
    with caplog.at_level(logging.WARNING, logger='sigfile.keywords'):
        ext_header = unpack_keywords(region, sys.byteorder == 'little', 'list')
    assert ext_header == [Keyword('GOOD', 7), Keyword('ALSO_GOOD', 'x')]
    assert "'Z'" in caplog.text
    assert "'BAD'" in caplog.text
    assert "'P'" in caplog.text

def test_region_boundary():
    """Test that the walk ends exactly at the end of the region."""
    records = [keyword(f'K{i}', 'A', 'v' * i) for i in range(1, 6)]
    region = b''.join(records)
    assert len(read_keywords(region, sys.byteorder == 'little')) == 5
    # Region cut short inside the last record: the first four survive
    assert len(read_keywords(region[:-1], sys.byteorder == 'little')) == 4

def test_invalid_record_length(caplog):
    """Test that a zero length record stops the walk instead of looping."""
    region = keyword('OK', 'L', 1) + b'\x00' * 16
    with caplog.at_level(logging.WARNING, logger='sigfile.keywords'):
        assert read_keywords(region, sys.byteorder == 'little') == [Keyword('OK', 1)]
    assert "Invalid keyword record length 0" in caplog.text

def test_lots_of_keywords():
    """Test 100 numbered text keywords, including padded values, read back exactly."""
    expected = {}
    records = []
    for i in range(1, 101):
        if i <= 20:
            strpad = ''
        elif i <= 30:
            strpad = ' ' * 16
        else:
            strpad = ' ' * 32
        key = f'KEYWORD_{i:03d}'
        value = f'[value___{i:03d}{strpad}]'
        if i > 50:
            value += ' '
        expected[key] = value
        records.append(keyword(key, 'A', value))

    ext_header = unpack_keywords(b''.join(records), sys.byteorder == 'little', 'dict')
    assert len(ext_header) == 100
    for key, value in expected.items():
        assert ext_header[key] == value
