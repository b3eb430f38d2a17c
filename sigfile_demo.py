"""
Sigfile Demo Script

This script writes a small type 1000 and a small type 2000 Bluefile, then
reads them back with sigfile: header fields, extended header keywords in both
representations, and the zero-copy data views.
"""

import os
import struct
import sys

import numpy as np

import sigfile

print("Sigfile Demo")
print("============")

# The demo files are written in the byte order of this machine
rep = 'EEEI' if sys.byteorder == 'little' else 'IEEE'
e = '<' if sys.byteorder == 'little' else '>'


def keyword(tag, fmt, payload):
    tag = tag.encode('latin-1')
    padding = -(8 + len(payload) + len(tag)) % 8
    lextra = 8 + len(tag) + padding
    return struct.pack(e + 'Ihb', len(payload) + lextra, lextra, len(tag)) + fmt.encode() \
        + payload + tag + b'\x00' * padding


def write_bluefile(path, file_type, fmt, data, subsize=0, keywords=b''):
    header = bytearray(512)
    header[0:12] = ('BLUE' + rep + rep).encode('latin-1')
    header[32:48] = struct.pack(e + 'dd', 512.0, float(len(data)))
    header[48:52] = struct.pack(e + 'I', file_type)
    header[52:54] = fmt.encode('latin-1')
    header[256:300] = struct.pack(e + 'ddiiddi', 0.0, 0.001, 1, subsize, 10.0, 0.5, 2)
    body = header + data
    if keywords:
        body += b'\x00' * (-len(body) % 512)
        body[24:32] = struct.pack(e + 'ii', len(body) // 512, len(keywords))
        body += keywords
    with open(path, 'wb') as f:
        f.write(body)
    print(f"Wrote {path}: {len(body)} bytes")


#-------------------------
# 1. Type 1000 Bluefile
#-------------------------
print("\n1. Type 1000 Bluefile")
print("---------------------")

sine_file = "sigfile_sine.tmp"
samples = np.sin(np.linspace(0, 2 * np.pi, 64)).astype(np.float64)
write_bluefile(sine_file, 1000, 'SD', samples.tobytes(),
               keywords=keyword('COMMENT', 'A', b'64 samples of one sine period')
               + keyword('GAIN', 'D', struct.pack(e + 'd', 2.5))
               + keyword('GAIN', 'D', struct.pack(e + 'd', 4.0)))

hdr = sigfile.BlueFileReader().read(sine_file).result()
print(hdr)
print(f"Elements: {hdr.size}, xdelta: {hdr.xdelta}")
print(f"First samples: {hdr.data[:4]}")
print(f"Keywords as dict: {hdr.ext_header}")

hdr = sigfile.BlueFileReader({'ext_header_type': 'list'}).read(sine_file).result()
print(f"Keywords as list: {hdr.ext_header}")

#-------------------------
# 2. Type 2000 Bluefile
#-------------------------
print("\n2. Type 2000 Bluefile")
print("---------------------")

frames_file = "sigfile_frames.tmp"
frames = np.arange(3 * 4 * 2, dtype=np.float32).reshape(3, 4, 2)
write_bluefile(frames_file, 2000, 'CF', frames.tobytes(), subsize=4)

with open(frames_file, 'rb') as f:
    buf = f.read()
hdr = sigfile.decode(buf)
print(f"Format {hdr.format}: spa={hdr.spa}, bps={hdr.bps}, ape={hdr.ape}, bpe={hdr.bpe}")
print(f"Data shape: {hdr.data.shape}")
print(f"Second frame, complex values:\n{hdr.data[1]}")

#-------------------------
# 3. Bit-packed data
#-------------------------
print("\n3. Bit-packed data")
print("------------------")

bits = sigfile.BitArray(b'\xa5\x0f')
print(f"{bits}: {list(bits)}")

# Cleanup
for path in (sine_file, frames_file):
    os.remove(path)
print("\nDemo completed.")
