from unittest import TestCase
from io import StringIO

from taxstats.ncbi import TaxonSummary
from taxstats.report import HEADER, TaxonSummaryWriter


class TestTaxonSummaryWriter(TestCase):
    """
    Test the TaxonSummaryWriter class.
    """

    def testHeader(self):
        """
        The header must contain the three column names, separated by TABs.
        """
        fp = StringIO()
        TaxonSummaryWriter(fp).writeHeader()
        self.assertEqual(
            "taxon\tassembly_length\tnum_protein_coding_genes\n", fp.getvalue()
        )
        self.assertEqual(3, len(HEADER))

    def testSummary(self):
        """
        A summary must be written as a TAB-separated line, with a taxon name
        containing a space left intact.
        """
        fp = StringIO()
        TaxonSummaryWriter(fp).write(TaxonSummary("mus musculus", "2728206152", 26251))
        self.assertEqual("mus musculus\t2728206152\t26251\n", fp.getvalue())

    def testZeroGenes(self):
        """
        A zero gene count must be written as 0, not as missing.
        """
        fp = StringIO()
        TaxonSummaryWriter(fp).write(TaxonSummary("x", "10", 0))
        self.assertEqual("x\t10\t0\n", fp.getvalue())

    def testMissingValues(self):
        """
        Values that could not be retrieved must be written using the default
        missing value.
        """
        fp = StringIO()
        TaxonSummaryWriter(fp).write(TaxonSummary("x", None, None))
        self.assertEqual("x\tNA\tNA\n", fp.getvalue())

    def testCustomMissingValue(self):
        """
        A custom missing value must be used if given.
        """
        fp = StringIO()
        TaxonSummaryWriter(fp, missing="-").write(TaxonSummary("x", "10", None))
        self.assertEqual("x\t10\t-\n", fp.getvalue())

    def testSeveral(self):
        """
        Several summaries must be written in the order given, after the header.
        """
        fp = StringIO()
        writer = TaxonSummaryWriter(fp)
        writer.writeHeader()
        writer.write(TaxonSummary("b", "2", 2))
        writer.write(TaxonSummary("a", "1", 1))
        lines = fp.getvalue().splitlines()
        self.assertEqual(["b\t2\t2", "a\t1\t1"], lines[1:])
