import pytest

from executable import (
    AInstruction, CInstruction, EncodingError, Executable,
    COMP_CODES, DEST_CODES, JUMP_CODES, decode_word, disassemble,
)


@pytest.mark.parametrize("address", [0, 1, 2, 16, 255, 16384, 24576, 32767])
def test_a_instruction_encoding(address):
    word = AInstruction(address).encode()
    assert len(word) == 16
    assert word[0] == '0'
    assert int(word[1:], 2) == address


@pytest.mark.parametrize("address", [-1, 32768, 65535])
def test_a_instruction_out_of_range(address):
    with pytest.raises(EncodingError) as excinfo:
        AInstruction(address)
    assert excinfo.value.category == 'address'


def test_c_instruction_layout():
    word = CInstruction('AMD', 'D|M', 'JMP').encode()
    assert word == '111' + '1010101' + '111' + '111'


@pytest.mark.parametrize("comp,code", sorted(COMP_CODES.items()))
def test_comp_table(comp, code):
    word = CInstruction('', comp, '').encode()
    assert word[:3] == '111'
    assert word[3:10] == code
    assert word[10:] == '000000'


@pytest.mark.parametrize("dest,code", sorted(DEST_CODES.items()))
def test_dest_table(dest, code):
    assert CInstruction(dest, '0', '').encode()[10:13] == code


@pytest.mark.parametrize("jump,code", sorted(JUMP_CODES.items()))
def test_jump_table(jump, code):
    assert CInstruction('', '0', jump).encode()[13:] == code


def test_known_encodings():
    assert CInstruction('D', 'A', '').encode() == '1110110000010000'
    assert CInstruction('D', 'D+A', '').encode() == '1110000010010000'
    assert CInstruction('M', 'D', '').encode() == '1110001100001000'
    assert CInstruction('', '0', 'JMP').encode() == '1110101010000111'


def test_table_sizes():
    assert len(COMP_CODES) == 28
    assert len(set(COMP_CODES.values())) == 28
    assert len(DEST_CODES) == 8
    assert len(JUMP_CODES) == 8


@pytest.mark.parametrize("fields,category,token", [
    (('X', 'Q', ''), 'comp', 'Q'),
    (('X', 'D', ''), 'dest', 'X'),
    (('DM', 'D', ''), 'dest', 'DM'),
    (('', 'D', 'JXX'), 'jump', 'JXX'),
    (('', 'A+D', ''), 'comp', 'A+D'),
])
def test_unknown_mnemonic(fields, category, token):
    with pytest.raises(EncodingError) as excinfo:
        CInstruction(*fields).encode()
    assert excinfo.value.category == category
    assert excinfo.value.token == token


def test_instruction_str():
    assert str(AInstruction(21)) == '@21'
    assert str(CInstruction('', '0', 'JMP')) == '0;JMP'
    assert str(CInstruction('MD', 'M+1', '')) == 'MD=M+1'
    assert str(CInstruction('D', 'D-1', 'JGT')) == 'D=D-1;JGT'


def test_instructions_are_immutable():
    instr = CInstruction('D', 'A', '')
    with pytest.raises(AttributeError):
        instr.comp = 'M'


def test_decode_word():
    assert decode_word('0000000000010101') == AInstruction(21)
    assert decode_word('1110001100001000') == CInstruction('M', 'D', '')
    assert decode_word('1111110111011000') == CInstruction('MD', 'M+1', '')


@pytest.mark.parametrize("word", [
    '',
    '0101',
    '00000000000000002',
    '000000000000000x',
    '1100001100001000',
    '1111111111000000',
])
def test_decode_word_rejects_bad_words(word):
    with pytest.raises(ValueError):
        decode_word(word)


def test_executable_encode():
    exe = Executable(code=[AInstruction(2), CInstruction('D', 'A', '')])
    assert exe.encode() == '0000000000000010\n1110110000010000\n'
    assert exe.words() == ['0000000000000010', '1110110000010000']
    assert len(exe) == 2


def test_empty_executable():
    exe = Executable()
    assert exe.encode() == ''
    assert Executable.decode('').code == []


def test_executable_decode():
    exe = Executable.decode('0000000000000011\n1110000010010000\n')
    assert exe.code == [AInstruction(3), CInstruction('D', 'D+A', '')]


def test_executable_decode_reports_line():
    with pytest.raises(ValueError, match='Line 2'):
        Executable.decode('0000000000000011\nnot a word\n')


def test_disassemble():
    exe = Executable(code=[AInstruction(16), CInstruction('', 'D', 'JGT')])
    listing = disassemble(exe).splitlines()
    assert listing[0] == '// Code length: 2 instructions'
    assert listing[2] == '0x0000: 0000000000010000  @16'
    assert listing[3] == '0x0001: 1110001100000001  D;JGT'
