#!/usr/bin/env python3
"""Quick key derivation / encode benchmark - direct timing only"""
import time


TEXT = "Hello World Testing Performance Benchmark" * 100
ROUNDS = 20


def bench_derive():
    from dms4096.kdf import derive_key, generate_salt

    salt = generate_salt()
    start = time.perf_counter()
    for _ in range(ROUNDS):
        derive_key("benchmark passphrase", salt)
    return time.perf_counter() - start


def bench_encode():
    import dms4096

    start = time.perf_counter()
    for _ in range(ROUNDS):
        result = dms4096.encode_text(TEXT, "benchmark passphrase")
    elapsed = time.perf_counter() - start
    return elapsed, result


def main():
    from dms4096 import settings

    print(f"Benchmarking PBKDF2-SHA256 x{settings.KDF_ITERATIONS:,} ({ROUNDS} rounds)...")
    kdf_time = bench_derive()
    print(f"  derive_key: {kdf_time:.3f}s ({kdf_time / ROUNDS * 1000:.2f} ms/op)")

    print(f"Input size: {len(TEXT)} chars")
    enc_time, result = bench_encode()
    print(f"  encode_text: {enc_time:.3f}s ({enc_time / ROUNDS * 1000:.2f} ms/op)")
    print(f"  Output sample: {result[:60]}...")

    print("\n✅ Benchmark complete")


if __name__ == '__main__':
    main()
