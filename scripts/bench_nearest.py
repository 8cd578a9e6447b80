"""Microbenchmark for climgrid.spatial.nearest

Usage:
    python scripts/bench_nearest.py --n 200 --queries 1000 --repeats 5

Options:
    --n: grid size per side (default 200)
    --queries: number of query points
    --repeats: repetitions per test
"""
import time
import argparse
import numpy as np

from climgrid.spatial import nearest


def make_grid(n, seed=0):
    rng = np.random.RandomState(seed)
    X, Y = np.meshgrid(np.linspace(-180.0, 180.0, n), np.linspace(-90.0, 90.0, n))
    mask = rng.uniform(size=X.shape) > 0.3
    return X, Y, mask


def time_fn(fn, args, repeats=5):
    # warmup
    fn(*args)
    ts = []
    for _ in range(repeats):
        t0 = time.perf_counter()
        fn(*args)
        t1 = time.perf_counter()
        ts.append(t1 - t0)
    return min(ts), sum(ts) / len(ts)


def run_bench(n=200, queries=1000, repeats=5):
    X, Y, mask = make_grid(n)
    rng = np.random.RandomState(1)
    qx = rng.uniform(-180.0, 180.0, size=queries)
    qy = rng.uniform(-90.0, 90.0, size=queries)

    print(f'Grid: {n}x{n}, queries: {queries}, repeats: {repeats}')

    tmin, tavg = time_fn(lambda: nearest.nearest_2d(X, Y, qx, qy, mask=mask, kdtree_min_cells=10**12), (), repeats)
    print(f'nearest_2d (scan):   min={tmin:.6f}s avg={tavg:.6f}s')

    tmin, tavg = time_fn(lambda: nearest.nearest_2d(X, Y, qx, qy, mask=mask, kdtree_min_cells=1), (), repeats)
    print(f'nearest_2d (kdtree): min={tmin:.6f}s avg={tavg:.6f}s')

    tmin, tavg = time_fn(lambda: nearest.nearest_1d(X[0], qx), (), repeats)
    print(f'nearest_1d:          min={tmin:.6f}s avg={tavg:.6f}s')


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument('--n', type=int, default=200)
    parser.add_argument('--queries', type=int, default=1000)
    parser.add_argument('--repeats', type=int, default=5)
    args = parser.parse_args()
    run_bench(args.n, args.queries, args.repeats)


if __name__ == '__main__':
    main()
