from json import loads
from subprocess import CalledProcessError
from urllib.parse import quote

import requests

from taxstats.errors import FetchError
from taxstats.process import Executor

# The value of gene.type in a gene report for a protein-coding gene.
PROTEIN_CODING = "PROTEIN_CODING"

# See https://www.ncbi.nlm.nih.gov/datasets/docs/v2/reference-docs/rest-api/
# for the REST API. The datasets command-line tool is a client of the same
# service and produces the same report JSON.
API_URL = "https://api.ncbi.nlm.nih.gov/datasets/v2"

# The largest page size the REST API allows for gene reports.
API_PAGE_SIZE = 1000


class TaxonSummary:
    """
    Hold the information retrieved for one taxon.

    @param taxon: The C{str} taxon name.
    @param assemblyLength: The C{str} total sequence length of the reference
        assembly of the taxon, or C{None} if it could not be retrieved.
    @param proteinCodingGeneCount: The C{int} number of protein-coding genes
        in the taxon, or C{None} if it could not be retrieved.
    """

    def __init__(self, taxon, assemblyLength, proteinCodingGeneCount):
        self.taxon = taxon
        self.assemblyLength = assemblyLength
        self.proteinCodingGeneCount = proteinCodingGeneCount

    def __eq__(self, other):
        return (
            self.taxon == other.taxon
            and self.assemblyLength == other.assemblyLength
            and self.proteinCodingGeneCount == other.proteinCodingGeneCount
        )

    def __repr__(self):
        return "TaxonSummary(%r, %r, %r)" % (
            self.taxon,
            self.assemblyLength,
            self.proteinCodingGeneCount,
        )


def decode(taxon, text):
    """
    Decode a JSON document.

    @param taxon: The C{str} taxon the document was retrieved for.
    @param text: The C{str} JSON.
    @raise FetchError: If C{text} is not a JSON object.
    @return: A C{dict}.
    """
    try:
        document = loads(text)
    except ValueError as e:
        raise FetchError(taxon, "could not parse JSON (%s)." % e)

    if not isinstance(document, dict):
        raise FetchError(taxon, "expected a JSON object, got %r." % text[:80])

    return document


class AssemblyReport:
    """
    The parts of a genome summary report that we use.

    @param taxon: The C{str} taxon the report was retrieved for.
    @param document: A C{dict} holding a decoded genome summary document, as
        produced by 'datasets summary genome taxon'.
    @raise FetchError: If the document has no reports or the first report
        has no total sequence length.
    """

    def __init__(self, taxon, document):
        self.taxon = taxon
        reports = document.get("reports")

        if not isinstance(reports, list) or not reports:
            raise FetchError(taxon, "no genome assembly reports found.")

        report = reports[0]

        try:
            length = report["assembly_stats"]["total_sequence_length"]
        except (KeyError, TypeError):
            length = None

        if length is None:
            raise FetchError(
                taxon,
                "genome assembly report has no "
                "assembly_stats.total_sequence_length field.",
            )

        # The length can arrive either as a JSON number or a JSON string.
        self.totalSequenceLength = str(length).strip('"')


class GeneReport:
    """
    The parts of a gene summary report that we use.

    @param taxon: The C{str} taxon the report was retrieved for.
    @param document: A C{dict} holding a decoded gene summary document (or
        one page of one), as produced by 'datasets summary gene taxon'.
    @raise FetchError: If the reports in the document are not a list of
        objects that each have a gene object.
    """

    def __init__(self, taxon, document):
        self.taxon = taxon
        # The reports key is omitted when there are no genes.
        reports = document.get("reports", [])

        if not isinstance(reports, list):
            raise FetchError(taxon, "gene reports are not a list.")

        self.geneTypes = []
        for report in reports:
            gene = report.get("gene") if isinstance(report, dict) else None
            if not isinstance(gene, dict):
                raise FetchError(taxon, "gene report has no gene field.")
            self.geneTypes.append(gene.get("type"))

    def proteinCodingCount(self):
        """
        How many of the genes are protein coding?

        @return: The C{int} number of genes whose type is PROTEIN_CODING.
        """
        return self.geneTypes.count(PROTEIN_CODING)


class NCBIDatasets:
    """
    Retrieve assembly and gene summaries for taxa from NCBI Datasets.

    Subclasses must implement C{genomeSummary} (returning a decoded genome
    summary document) and C{geneSummaries} (returning an iterable of decoded
    gene summary documents).
    """

    # The external tools that must be available.
    requiredTools = ()

    def genomeSummary(self, taxon):
        raise NotImplementedError("genomeSummary must be implemented by a subclass")

    def geneSummaries(self, taxon):
        raise NotImplementedError("geneSummaries must be implemented by a subclass")

    def fetchAssemblyLength(self, taxon):
        """
        Get the length of the reference genome assembly of a taxon.

        @param taxon: The C{str} taxon name.
        @raise FetchError: If the summary cannot be retrieved or lacks the
            total sequence length.
        @return: The C{str} total sequence length.
        """
        return AssemblyReport(taxon, self.genomeSummary(taxon)).totalSequenceLength

    def fetchProteinCodingGeneCount(self, taxon):
        """
        Count the protein-coding genes of a taxon.

        @param taxon: The C{str} taxon name.
        @raise FetchError: If the summary cannot be retrieved or is malformed.
        @return: The C{int} number of protein-coding genes.
        """
        return sum(
            GeneReport(taxon, document).proteinCodingCount()
            for document in self.geneSummaries(taxon)
        )

    def summarize(self, taxon):
        """
        Get the assembly length and protein-coding gene count of a taxon.

        @param taxon: The C{str} taxon name.
        @raise FetchError: If either lookup fails.
        @return: A C{TaxonSummary} instance.
        """
        return TaxonSummary(
            taxon,
            self.fetchAssemblyLength(taxon),
            self.fetchProteinCodingGeneCount(taxon),
        )


class DatasetsCommand(NCBIDatasets):
    """
    Get taxon summaries by running the NCBI 'datasets' command.

    @param executor: An C{Executor} instance, or C{None} to make one.
    @param datasets: The C{str} name or path of the datasets executable.
    """

    def __init__(self, executor=None, datasets="datasets"):
        self._executor = executor or Executor()
        self.datasets = datasets
        self.requiredTools = (datasets,)

    def _run(self, taxon, args):
        """
        Run datasets and decode its output.

        @param taxon: The C{str} taxon name.
        @param args: A C{list} of C{str} arguments for datasets.
        @raise FetchError: If datasets cannot be run, exits with a non-zero
            status, or does not print a JSON object.
        @return: A C{dict} holding the decoded output.
        """
        try:
            result = self._executor.execute([self.datasets] + args)
        except CalledProcessError as e:
            raise FetchError(
                taxon, "%s exited with status %d." % (self.datasets, e.returncode)
            )
        except FileNotFoundError:
            raise FetchError(taxon, "could not run %r." % self.datasets)

        return decode(taxon, result.stdout)

    def genomeSummary(self, taxon):
        return self._run(taxon, ["summary", "genome", "taxon", taxon, "--reference"])

    def geneSummaries(self, taxon):
        # The command fetches all pages itself and prints a single document.
        return [self._run(taxon, ["summary", "gene", "taxon", taxon])]


class DatasetsAPI(NCBIDatasets):
    """
    Get taxon summaries from the NCBI Datasets REST API.

    @param url: The C{str} base URL of the API.
    @param session: A C{requests.Session} instance, or C{None} to make one.
    @param verboseFp: If not C{None}, must be an open file descriptor. The
        URLs that are requested will be written to this descriptor.
    """

    def __init__(self, url=API_URL, session=None, verboseFp=None):
        self.url = url.rstrip("/")
        self._session = session or requests.Session()
        self._verboseFp = verboseFp

    def _get(self, taxon, path, params):
        """
        Get a JSON report from the API.

        @param taxon: The C{str} taxon name.
        @param path: The C{str} report path, relative to the taxon.
        @param params: A C{dict} of query parameters.
        @raise FetchError: If the request fails or the response is not a
            JSON object.
        @return: A C{dict} holding the decoded response.
        """
        url = "%s/%s/taxon/%s/dataset_report" % (self.url, path, quote(taxon, safe=""))

        if self._verboseFp:
            print("GET %s %s" % (url, params), file=self._verboseFp)

        try:
            response = self._session.get(url, params=params)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(taxon, "request failed (%s)." % e)

        return decode(taxon, response.text)

    def genomeSummary(self, taxon):
        return self._get(taxon, "genome", {"filters.reference_only": "true"})

    def geneSummaries(self, taxon):
        params = {"page_size": API_PAGE_SIZE}
        while True:
            document = self._get(taxon, "gene", params)
            yield document
            token = document.get("next_page_token")
            if not token:
                break
            params = {"page_size": API_PAGE_SIZE, "page_token": token}
