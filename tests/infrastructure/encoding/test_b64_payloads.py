import base64
import unittest

import numpy as np

from numstride.infrastructure.encoding import payload_to_ndarray, tensor_to_payload
from numstride.infrastructure.tensor import TensorManager


class TestB64Payloads(unittest.TestCase):
    def setUp(self):
        self.tm = TensorManager(workers=1)

    def test_payload_fields(self):
        t = self.tm.of_float().seq((2, 3))
        payload = tensor_to_payload(t)
        self.assertEqual(payload["dtype"], "float")
        self.assertEqual(payload["shape"], [2, 3])
        self.assertEqual(payload["order"], "C")
        self.assertEqual(len(base64.b64decode(payload["b64"])), 6 * 4)

    def test_strided_view_is_written_in_logical_order(self):
        t = self.tm.of_double().seq((3, 4)).t()
        arr = payload_to_ndarray(tensor_to_payload(t))
        np.testing.assert_array_equal(arr, np.arange(12.0).reshape(3, 4).T)
        self.assertTrue(arr.flags.c_contiguous)
        self.assertEqual(arr.dtype, np.float64)

    def test_rank_zero(self):
        arr = payload_to_ndarray(tensor_to_payload(self.tm.of_double().scalar(2.5)))
        self.assertEqual(arr.shape, ())
        self.assertEqual(float(arr), 2.5)

    def test_length_mismatch_rejected(self):
        payload = tensor_to_payload(self.tm.of_double().zeros((2, 2)))
        payload["shape"] = [3, 2]
        with self.assertRaises(ValueError):
            payload_to_ndarray(payload)

    def test_unknown_dtype_rejected(self):
        payload = tensor_to_payload(self.tm.of_double().zeros((2,)))
        payload["dtype"] = "int8"
        with self.assertRaises(ValueError):
            payload_to_ndarray(payload)


if __name__ == "__main__":
    unittest.main()
