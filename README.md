# smpaq

`smpaq` runs a private aggregate query between `n` client sessions and `n`
server sessions. The clients hold identifiers, the servers hold identifiers
together with values, and an aggregate over the matching entries is computed
without either side handing its set to the other.

Two protocol variants are available:

- **SMPAQ1**: the leading client (session 0) creates a Paillier key pair and
  sends the public key to the leading server. Each server encrypts its values
  under that key. After two OPRF rounds the leading server multiplies the
  ciphertexts of every matching entry and returns the result; the leading
  client decrypts it and prints `original_sum : <value>`.
- **SMPAQ2**: each server splits its values into two additive shares modulo
  2**64, one for the center server (session `n-1`) and one for the leader
  server (session 0). After two OPRF rounds both return the sum of their
  shares over the matching entries. The clients add the two partial sums and
  print `Center Sum = ..., Leader Sum = ..., Total Sum = ...`.

On the server side the order in which sessions are started, and so which
thread holds which index, is drawn with a signature-based VRF
(`smpaq.vrf.Vrf`). The drawn order is printed as `server_seq: ...`.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Running the protocol

The package installs the `smpaq` command. Start the server side and the
client side in two terminals with the same settings. `0` is the server role,
`1` the client role.

```
smpaq -r 0 -n 8 -s 1024 -y SMPAQ1
smpaq -r 1 -n 8 -c 1 -y SMPAQ1
```

Each process runs `n` sessions in threads. Session `i` uses two TCP
connections: one on `port + i` and one on `port + i + 3*n`. The server side
listens, the client side connects and retries for up to 30 seconds while the
server is not yet up. When every session has finished, the timings of all
sessions are averaged and printed.

Options (defaults in brackets):

| option | meaning |
| --- | --- |
| `-r`, `--role` | role of this process, `0` or `1`, required |
| `-n`, `--n` | number of sessions on each side [8] |
| `-g`, `--g` | match threshold, stored in the run context [5] |
| `-c`, `--cneles` | number of client elements [1] |
| `-s`, `--sneles` | number of server elements [1024] |
| `-b`, `--bit-length` | bit length of the elements, used in the traffic accounting [58] |
| `-e`, `--epsilon` | table size multiplier; `nbins = sneles * epsilon` [1.0] |
| `-E`, `--hint-epsilon` | hint table size multiplier, stored in the run context [1.27] |
| `-a`, `--address` | address to listen on or connect to [0.0.0.0] |
| `-p`, `--port` | first port [7777] |
| `-m`, `--radix` | radix, stored in the run context [5] |
| `-f`, `--functions` | hash functions in the hash tables, stored in the run context [3] |
| `-F`, `--hint-functions` | hash functions in the hint tables, stored in the run context [3] |
| `-y`, `--psm-type` | `SMPAQ1` or `SMPAQ2` [SMPAQ1] |

`smpaq --help` prints the same list. Any other `--psm-type` raises
`ValueError: Unknown SMPAQ type: ...`.

### Files written by the servers

Server sessions write CSV files into the current directory:

- SMPAQ1: `Server_Data_EncryptData_<index>.csv` holds the encrypted values
  of a session. If the file already exists it is read back instead of
  encrypting new values, so delete these files when the key changes.
- SMPAQ2: `Server_Center_ID.csv`, `Server_Leader_ID.csv` and
  `Server__leader_Oprf2_<index>.csv` hold the second-round identifiers.

## Using the building blocks

The pieces the protocol is built from can be used on their own.

```python
from smpaq.blocks import block_to_uint64_xor, to_block
from smpaq.paillier import Paillier, decrypt_number, encrypt_number
from smpaq.timer import Timer
from smpaq.vrf import Vrf

timer = Timer()
order = Vrf().sequence(8)          # a permutation of 0..7
print(order, timer.end(), "ms")

print(block_to_uint64_xor(to_block(4000)))   # [4000]

keys = Paillier()
cipher = encrypt_number(5, keys.n, keys.g)
print(decrypt_number(cipher, keys.n, keys.lambda_, keys.lambda_inverse))  # 5
```

- `smpaq.config`: `PsiAnalyticsContext`, `Timings`, `Role`, `PsmType`.
- `smpaq.paillier`: `encrypt_number`, `decrypt_number`, `encrypt`,
  `random_numbers` and the `Paillier` key holder with `encrypted_sum`.
- `smpaq.ots`: `ot_receiver` and `ot_sender`, a blinded-exponentiation OPRF
  over the prime field 2**521 - 1 run over a `Channel`.
- `smpaq.net`: `Channel` (counted sends and receives of bytes, 64-bit words
  and length-prefixed text) and `establish_connection`.
- `smpaq.keyagreement`: Diffie-Hellman keys (`KeyAgreement`,
  `compute_shared_secret`).
- `smpaq.csvio`: `write_csv`, `read_int_csv`, `file_exists`.
- `smpaq.sync`: `GlobalData`, `GlobalFlag`, `wait_for` and `wait_for_pair`,
  through which the sessions of one process coordinate.
- `smpaq.protocol`: `run_smpaq`, `run_server`; `smpaq.client`: `run_client`.

## What it does not do

- The inputs are fixed test data: every client element is `4000` and the
  server elements are `0, 2000, 4000, ...`. The values aggregated are random
  numbers between 1 and 10000 (SMPAQ1) or seeded numbers between 0 and 1000
  per session (SMPAQ2). There is no option to load your own data.
- The traffic figures are recorded in each session's context but not
  printed; only timings are reported.
- The Paillier key is built from a fixed pair of primes rather than freshly
  generated ones, and the `-g`, `-E`, `-m`, `-f` and `-F` settings do not
  change what the protocol does.