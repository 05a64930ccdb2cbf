
def check_uint(name:str, value:int, bits:int) -> int:
    """Returns `value` if it fits an unsigned field of `bits` width."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError('%s must be an int, got %s' % (name, type(value).__name__))
    if value < 0 or value >> bits != 0:
        raise ValueError('%s does not fit in %d bits: %s' % (name, bits, hex(value)))
    return value

def check_blob(name:str, value, size:int) -> bytes:
    """Returns `value` as bytes if it is exactly `size` bytes long."""
    value = bytes(value)
    if len(value) != size:
        raise ValueError('%s must be %d bytes, got %d' % (name, size, len(value)))
    return value

def buffer_size(dest) -> int:
    """Size in bytes of a writable, contiguous buffer (bytearray, memoryview, ...)."""
    with memoryview(dest) as view:
        if view.readonly:
            raise TypeError('Destination buffer is read-only')
        if not view.contiguous:
            raise TypeError('Destination buffer must be contiguous')
        return view.nbytes

def copy_into(dest, data:bytes):
    """Overwrite the beginning of `dest` with `data`, zero-filling the rest."""
    view = memoryview(dest).cast('B')
    try:
        view[:] = bytes(len(view))
        view[:len(data)] = data
    finally:
        view.release()


# https://gist.github.com/ImmortalPC/c340564823f283fe530b
def hexdump(src, length=16, sep='.'):
    """
    Pretty printing binary data blobs
    :param src: Binary blob
    :type src: bytearray
    :param length: Size of data in each row
    :type length: int
    :param sep: Character to print when data byte is non-printable ASCII
    :type sep: str(char)
    :return: str
    """
    result = []

    for i in range(0, len(src), length):
        subSrc = src[i:i+length]
        hexa = ''
        for h in range(0,len(subSrc)):
            if h == length/2:
                hexa += ' '
            hexa += '%02x ' % subSrc[h]
        hexa = hexa.strip(' ')
        text = ''
        for c in subSrc:
            if 0x20 <= c < 0x7F:
                text += chr(c)
            else:
                text += sep
        result.append(('%08X:  %-'+str(length*(2+1)+1)+'s  |%s|') % (i, hexa, text))

    return '\n'.join(result)
