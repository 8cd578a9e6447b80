import numpy as np
import pytest

from climgrid.spatial import utils
from climgrid.spatial.errors import ShapeMismatchError


def test_safe_build_kdtree_none():
    assert utils.safe_build_kdtree(None) is None


def test_safe_build_kdtree_empty():
    assert utils.safe_build_kdtree(np.empty((0, 2))) is None


def test_safe_build_kdtree_valid():
    pts = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]])
    tree = utils.safe_build_kdtree(pts)
    assert tree is not None
    d, idx = tree.query([0.1, 0.1])
    assert idx == 0


def test_safe_build_kdtree_vector_input():
    tree = utils.safe_build_kdtree([0.0, 5.0, 10.0])
    d, idx = tree.query([6.0])
    assert idx == 1


def test_safe_log_exception_fallback(capfd):
    class BadLogger:
        def exception(self, *args, **kwargs):
            raise RuntimeError('logger failed')

    old_logger = utils.logger
    try:
        utils.logger = BadLogger()
        try:
            raise ValueError('boom')
        except Exception as e:
            utils.safe_log_exception('test message', e, key='value')
        captured = capfd.readouterr()
        assert 'LOGGING FAILURE' in captured.err
    finally:
        utils.logger = old_logger


def test_safe_log_exception_with_context(caplog):
    with caplog.at_level('ERROR', logger='climgrid.spatial.utils'):
        utils.safe_log_exception('lookup failed', RuntimeError('x'), rows=18)
    assert 'rows=18' in caplog.text


def test_as_float_array_copies_and_fills_masked():
    src = np.array([1, 2, 3])
    out = utils.as_float_array(src)
    out[0] = 99.0
    assert src[0] == 1
    masked = np.ma.masked_array([1.0, 2.0], mask=[False, True])
    assert np.isnan(utils.as_float_array(masked)[1])
    with pytest.raises(TypeError):
        utils.as_float_array(['a', 'b'], name='labels')


def test_require_same_shape():
    assert utils.require_same_shape(a=np.ones((2, 3)), b=np.zeros((2, 3))) == (2, 3)
    with pytest.raises(ShapeMismatchError) as exc:
        utils.require_same_shape(a=np.ones((2, 3)), b=np.zeros((3, 2)))
    assert 'a(2, 3)' in str(exc.value)
