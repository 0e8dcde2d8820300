import dataclasses
import unittest

from bank_dsl.errors import MalformedRange, NoBankMatch
from bank_dsl.structures import (
    Add, Bank, BoolOp, Combine, Comparison, ComparisonOperator, ComparisonSide, Component, Constant,
    Noop, Partition, Range, RShift, Sequence, Switch, SwitchCase,
)


def lt(value):
    return Comparison(ComparisonSide.INPUT_LEFT, ComparisonOperator.LT, value)


class RangeTest(unittest.TestCase):
    """
    Range membership and indexing
    """

    def test_contiguous(self):
        r = Range(4, 8)
        self.assertEqual([a for a in range(12) if r.contains(a)], [4, 5, 6, 7])
        self.assertEqual(r.size(), 4)
        self.assertEqual(list(r.addresses()), [4, 5, 6, 7])

    def test_strided(self):
        r = Range(1, 8, 2)
        self.assertTrue(r.contains(5))
        self.assertFalse(r.contains(4))
        self.assertFalse(r.contains(9))
        self.assertEqual(r.size(), 4)
        self.assertEqual(list(r.addresses()), [1, 3, 5, 7])

    def test_strided_size_rounds_up(self):
        self.assertEqual(Range(0, 7, 2).size(), 4)
        self.assertEqual(Range(0, 8, 2).size(), 4)
        self.assertEqual(Range(4, 4).size(), 0)

    def test_index_of_and_get(self):
        r = Range(0x100, 0x120, 8)
        self.assertEqual(r.index_of(0x110), 2)
        self.assertIsNone(r.index_of(0x111))
        self.assertEqual(r.get(2), 0x110)
        self.assertIsNone(r.get(4))
        self.assertIsNone(r.get(-1))

    def test_no_stride_differs_from_stride_one(self):
        # Same addresses, different spelling
        self.assertEqual(list(Range(0, 4).addresses()), list(Range(0, 4, 1).addresses()))
        self.assertNotEqual(Range(0, 4), Range(0, 4, 1))

    def test_validation(self):
        with self.assertRaises(MalformedRange):
            Range(8, 4)
        with self.assertRaises(MalformedRange):
            Range(0, 8, 0)
        with self.assertRaises(MalformedRange):
            Range(-1, 8)

    def test_str_uses_hex(self):
        self.assertEqual(str(Range(0, 16, 4)), "[0x0:0x10:4]")


class PartitionTest(unittest.TestCase):
    """
    Partitions index their ranges as one concatenated sequence
    """

    def setUp(self):
        self.partition = Partition((Range(0, 4), Range(8, 12, 2)))

    def test_contains(self):
        self.assertTrue(self.partition.contains(3))
        self.assertTrue(self.partition.contains(10))
        self.assertFalse(self.partition.contains(9))
        self.assertFalse(self.partition.contains(4))

    def test_concatenated_indexing(self):
        self.assertEqual(self.partition.size(), 6)
        self.assertEqual(list(self.partition.addresses()), [0, 1, 2, 3, 8, 10])
        self.assertEqual(self.partition.index_of(8), 4)
        self.assertEqual(self.partition.index_of(10), 5)
        self.assertEqual(self.partition.get(5), 10)
        self.assertIsNone(self.partition.get(6))
        self.assertIsNone(self.partition.get(-1))

    def test_index_of_and_get_agree(self):
        for idx, address in enumerate(self.partition.addresses()):
            self.assertEqual(self.partition.index_of(address), idx)
            self.assertEqual(self.partition.get(idx), address)

    def test_needs_a_range(self):
        with self.assertRaises(ValueError):
            Partition(())


class ExpressionShapeTest(unittest.TestCase):
    """
    Constructor checks on expression nodes
    """

    def test_combine_operator_count(self):
        with self.assertRaises(ValueError):
            Combine((lt(1),), ())
        with self.assertRaises(ValueError):
            Combine((lt(1), lt(2)), (BoolOp.AND, BoolOp.OR))

    def test_sequence_holds_primitives(self):
        with self.assertRaises(ValueError):
            Sequence(())
        with self.assertRaises(ValueError):
            Sequence((Sequence((Noop(),)),))

    def test_switch_cannot_nest(self):
        inner = Switch((SwitchCase(lt(1), Noop()),), Constant(0))
        with self.assertRaises(ValueError):
            Switch((SwitchCase(lt(4), inner),), Noop())
        with self.assertRaises(ValueError):
            Switch((), Noop())

    def test_nodes_are_frozen(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            Add(1).value = 2


class ComponentTest(unittest.TestCase):
    """
    Bank selection and slot readback
    """

    def setUp(self):
        self.component = Component(8, 2, (
            Bank(Partition((Range(0, 8),)), Noop()),
            Bank(Partition((Range(4, 12),)), Constant(100)),
        ))

    def test_select_first_matching_bank(self):
        self.assertEqual(self.component.select_bank(5)[0], 0)
        self.assertEqual(self.component.select_bank(9)[0], 1)

    def test_select_no_match(self):
        with self.assertRaises(NoBankMatch) as ctx:
            self.component.select_bank(12)
        self.assertEqual(ctx.exception.address, 12)

    def test_needs_a_bank(self):
        with self.assertRaises(ValueError):
            Component(1, 1, ())

    def test_can_read(self):
        interleaved = Bank(Partition((Range(1, 8, 2),)), RShift(1))
        # 5 >> 1 == 2, and slot 2 of {1, 3, 5, 7} is 5
        self.assertTrue(interleaved.can_read(5))
        self.assertFalse(self.component.banks[1].can_read(5))


if __name__ == "__main__":
    unittest.main()
