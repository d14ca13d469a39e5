class ArgumentError(Exception):
    """The command line could not be parsed."""


class ToolMissingError(Exception):
    """A required external tool could not be found on the PATH."""


class FetchError(Exception):
    """
    Information about a taxon could not be retrieved.

    @param taxon: The C{str} taxon name whose lookup failed.
    @param message: A C{str} description of the failure.
    """

    def __init__(self, taxon, message):
        super().__init__("Could not fetch data for taxon %r: %s" % (taxon, message))
        self.taxon = taxon
