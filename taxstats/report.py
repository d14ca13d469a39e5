HEADER = ("taxon", "assembly_length", "num_protein_coding_genes")


class TaxonSummaryWriter:
    """
    Write taxon summaries as tab-separated lines.

    @param fp: An open file descriptor to write to.
    @param missing: The C{str} to write for a value that could not be
        retrieved.
    """

    def __init__(self, fp, missing="NA"):
        self.fp = fp
        self.missing = missing

    def _writeLine(self, fields):
        print("\t".join(fields), file=self.fp, flush=True)

    def writeHeader(self):
        self._writeLine(HEADER)

    def write(self, summary):
        """
        Write one summary line.

        @param summary: A L{taxstats.ncbi.TaxonSummary} instance.
        """
        self._writeLine(
            [
                summary.taxon,
                self.missing
                if summary.assemblyLength is None
                else summary.assemblyLength,
                self.missing
                if summary.proteinCodingGeneCount is None
                else str(summary.proteinCodingGeneCount),
            ]
        )
