import sys
import argparse
from os.path import exists
from typing import List, NamedTuple, Optional

from taxstats import __version__
from taxstats.errors import ArgumentError, FetchError, ToolMissingError
from taxstats.ncbi import DatasetsAPI, DatasetsCommand, TaxonSummary
from taxstats.process import Executor, checkTools
from taxstats.report import TaxonSummaryWriter

AUTHOR = "Fong Chun Chan <fongchunchan@gmail.com>"

DESCRIPTION = (
    "Use NCBI datasets to get the reference assembly length and number of "
    "protein coding genes for a list of taxa. The results are written to "
    "standard output as tab-separated values, one line per taxon, in the "
    "order the taxa were given."
)


class Options(NamedTuple):
    """
    The result of parsing the command line.
    """

    taxa: List[str]
    taxaFile: Optional[str]
    out: Optional[str]
    force: bool
    keepGoing: bool
    missing: str
    datasets: str
    api: bool
    verbose: bool


class VersionAction(argparse.Action):
    """
    Print the program version (to the parser's stderr) and exit.
    """

    def __init__(
        self,
        option_strings,
        dest=argparse.SUPPRESS,
        default=argparse.SUPPRESS,
        help=None,
    ):
        super().__init__(
            option_strings=option_strings,
            dest=dest,
            default=default,
            nargs=0,
            help=help,
        )

    def __call__(self, parser, namespace, values, option_string=None):
        parser.printVersion()
        parser.exit()


class TaxonArgumentParser(argparse.ArgumentParser):
    """
    An argument parser that writes help and version information to standard
    error and raises C{ArgumentError} instead of exiting on a bad command
    line.

    @param stderr: An open file descriptor for help, version and error
        output, or C{None} to use sys.stderr.
    """

    def __init__(self, *args, stderr=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._stderr = stderr

    @property
    def stderr(self):
        # Look sys.stderr up late so tests that replace it see the output.
        return sys.stderr if self._stderr is None else self._stderr

    def print_help(self, file=None):
        super().print_help(self.stderr if file is None else file)

    def print_usage(self, file=None):
        super().print_usage(self.stderr if file is None else file)

    def error(self, message):
        raise ArgumentError(message)

    def printVersion(self):
        print("%s version %s" % (self.prog, __version__), file=self.stderr)
        print(AUTHOR, file=self.stderr)

    def printUsageError(self, message):
        """
        Report a command line error, followed by the full usage.

        @param message: The C{str} error message.
        """
        self.printVersion()
        print("\n    Error: %s\n" % message, file=self.stderr)
        self.print_help()


def makeParser(prog=None, stderr=None):
    """
    Make a command line parser.

    @param prog: The C{str} program name to show in usage and version output,
        or C{None} to use the name the program was invoked with.
    @param stderr: An open file descriptor for help, version and error
        output, or C{None} to use sys.stderr.
    @return: A C{TaxonArgumentParser} instance.
    """
    parser = TaxonArgumentParser(
        prog=prog,
        stderr=stderr,
        description=DESCRIPTION,
        add_help=False,
        allow_abbrev=False,
    )

    parser.add_argument(
        "--taxons",
        nargs="+",
        action="extend",
        metavar="TAXON",
        help=(
            'The taxa to summarize, e.g., --taxons human "mus musculus" '
            '"Drosophila melanogaster". Taxa with a space in their name should '
            "be enclosed in double quotes. May be repeated."
        ),
    )

    parser.add_argument(
        "--taxons-file",
        metavar="FILE",
        help=(
            "A file of taxa to summarize, one per line. Blank lines and lines "
            "starting with '#' are ignored. These taxa are summarized after "
            "any given with --taxons."
        ),
    )

    parser.add_argument(
        "--out",
        metavar="FILE",
        help="The file to write the results to (default is standard output).",
    )

    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the --out file if it already exists.",
    )

    parser.add_argument(
        "--keep-going",
        action="store_true",
        help=(
            "If the information for a taxon cannot be retrieved, report the "
            "error and continue with the next taxon, writing the --missing "
            "value in place of anything not retrieved."
        ),
    )

    parser.add_argument(
        "--missing",
        default="NA",
        help=(
            "The value to write for information that could not be retrieved "
            "(default: NA)."
        ),
    )

    parser.add_argument(
        "--datasets",
        default="datasets",
        metavar="COMMAND",
        help="The name or path of the NCBI datasets command (default: datasets).",
    )

    parser.add_argument(
        "--api",
        action="store_true",
        help=(
            "Query the NCBI Datasets REST API directly instead of running the "
            "datasets command."
        ),
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print the commands that are run (or URLs fetched) to standard error.",
    )

    parser.add_argument(
        "-v", "--version", action=VersionAction, help="Print program name and version."
    )

    parser.add_argument(
        "-u",
        "-h",
        "--usage",
        "--help",
        action="help",
        help="Print this usage/help information.",
    )

    return parser


def readTaxaFile(filename):
    """
    Read taxon names from a file.

    @param filename: The C{str} name of a file with one taxon per line.
    @raise ArgumentError: If the file cannot be read.
    @return: A C{list} of C{str} taxon names.
    """
    try:
        with open(filename) as fp:
            lines = [line.strip() for line in fp]
    except OSError as e:
        raise ArgumentError("Could not read taxa file %r: %s." % (filename, e.strerror))

    return [line for line in lines if line and not line.startswith("#")]


def parseArgs(args=None, parser=None):
    """
    Parse a command line.

    @param args: A C{list} of C{str} arguments, or C{None} to use sys.argv.
    @param parser: A C{TaxonArgumentParser} instance, or C{None} to make one.
    @raise ArgumentError: If the command line is not valid.
    @raise SystemExit: With status 0, if help or version information was
        asked for (and has been printed).
    @return: An C{Options} instance.
    """
    parser = parser or makeParser()
    namespace = parser.parse_args(args)

    taxa = list(namespace.taxons or [])

    if namespace.taxons_file:
        taxa.extend(readTaxaFile(namespace.taxons_file))

    if not taxa:
        raise ArgumentError("No taxa given. Use --taxons and/or --taxons-file.")

    if namespace.out and exists(namespace.out) and not namespace.force:
        raise ArgumentError(
            "Will not overwrite pre-existing output file %r. "
            "Use --force to make me." % namespace.out
        )

    return Options(
        taxa=taxa,
        taxaFile=namespace.taxons_file,
        out=namespace.out,
        force=namespace.force,
        keepGoing=namespace.keep_going,
        missing=namespace.missing,
        datasets=namespace.datasets,
        api=namespace.api,
        verbose=namespace.verbose,
    )


def writeSummaries(source, taxa, writer, keepGoing=False, stderr=None):
    """
    Fetch and write the summary of each taxon, in order.

    @param source: An C{NCBIDatasets} instance.
    @param taxa: A C{list} of C{str} taxon names.
    @param writer: A C{TaxonSummaryWriter} instance.
    @param keepGoing: If C{True}, report fetch errors to C{stderr} and carry
        on with the next taxon. Otherwise, the first error is raised.
    @param stderr: An open file descriptor for error output, or C{None} to
        use sys.stderr.
    @raise FetchError: If C{keepGoing} is C{False} and a lookup fails.
    @return: The C{int} number of taxa for which a lookup failed.
    """
    stderr = sys.stderr if stderr is None else stderr
    failed = 0

    writer.writeHeader()

    for taxon in taxa:
        if keepGoing:
            values = []
            for fetch in (
                source.fetchAssemblyLength,
                source.fetchProteinCodingGeneCount,
            ):
                try:
                    values.append(fetch(taxon))
                except FetchError as e:
                    print(e, file=stderr)
                    values.append(None)
            if None in values:
                failed += 1
            summary = TaxonSummary(taxon, *values)
        else:
            summary = source.summarize(taxon)

        writer.write(summary)

    return failed


def main(args=None, stdout=None, stderr=None, source=None, prog=None):
    """
    Summarize taxa according to a command line.

    @param args: A C{list} of C{str} arguments, or C{None} to use sys.argv.
    @param stdout: An open file descriptor for the results, or C{None} to
        use sys.stdout.
    @param stderr: An open file descriptor for diagnostics, or C{None} to
        use sys.stderr.
    @param source: An C{NCBIDatasets} instance to get information from, or
        C{None} to make one according to the command line.
    @param prog: The C{str} program name to show in usage and version output.
    @raise SystemExit: With status 0, if help or version information was
        asked for.
    @return: The C{int} exit status.
    """
    stdout = sys.stdout if stdout is None else stdout
    stderr = sys.stderr if stderr is None else stderr

    parser = makeParser(prog=prog, stderr=stderr)

    try:
        options = parseArgs(args, parser)
    except ArgumentError as e:
        parser.printUsageError(str(e))
        return 1

    if source is None:
        verboseFp = stderr if options.verbose else None
        if options.api:
            source = DatasetsAPI(verboseFp=verboseFp)
        else:
            source = DatasetsCommand(
                executor=Executor(verboseFp=verboseFp), datasets=options.datasets
            )

    try:
        checkTools(source.requiredTools)
    except ToolMissingError as e:
        print(e, file=stderr)
        return 1

    def run(fp):
        writer = TaxonSummaryWriter(fp, missing=options.missing)
        return writeSummaries(source, options.taxa, writer, options.keepGoing, stderr)

    if options.out:
        try:
            fp = open(options.out, "w")
        except OSError as e:
            print(
                "Error: Could not open output file %r: %s." % (options.out, e.strerror),
                file=stderr,
            )
            return 1

    try:
        if options.out:
            with fp:
                failed = run(fp)
        else:
            failed = run(stdout)
    except FetchError as e:
        print(e, file=stderr)
        return 1

    if failed:
        print(
            "Information could not be retrieved for %d %s."
            % (failed, "taxon" if failed == 1 else "taxa"),
            file=stderr,
        )
        return 1

    return 0
