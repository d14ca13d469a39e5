import sys
import shutil
from time import time, ctime
from subprocess import PIPE, CalledProcessError, run

from taxstats.errors import ToolMissingError


class Executor:
    """
    Log and execute external commands.

    @param verboseFp: If not C{None}, must be an open file descriptor. The
        commands that are executed (and how long they took) will be written to
        this descriptor.
    @param useStderr: If C{True} and a command exits with a non-zero status,
        print a summary of the command standard output and standard error to
        sys.stderr before the exception is re-raised.
    """

    def __init__(self, verboseFp=None, useStderr=True):
        self.verboseFp = verboseFp
        self.useStderr = useStderr
        self.log = [f"# Executor created at {ctime(time())}."]

    def execute(self, command, **kwargs):
        """
        Execute a command. Add to our log.

        @param command: A C{list} of command arguments (including the executable
            name). The shell is never used, so arguments containing spaces (such
            as taxon names) need no quoting.
        @param kwargs: Keyword arguments that will be passed to subprocess.run.
        @raise CalledProcessError: If the command results in an error.
        @raise FileNotFoundError: If the executable cannot be found.
        @return: A C{CompletedProcess} instance. This has attributes such as
            C{returncode}, C{stdout}, and C{stderr}. See pydoc subprocess.
        """
        strCommand = " ".join(
            ("'%s'" % arg) if " " in arg else arg for arg in map(str, command)
        )

        start = time()
        self.log.extend(
            [
                "# Start command at %s" % ctime(start),
                "$ " + strCommand,
            ]
        )

        if self.verboseFp:
            print("$ " + strCommand, file=self.verboseFp)

        try:
            result = run(
                command,
                check=True,
                stdout=PIPE,
                stderr=PIPE,
                universal_newlines=True,
                **kwargs,
            )
        except CalledProcessError as e:
            if self.useStderr:
                print("CalledProcessError:", e, file=sys.stderr)
                print("STDOUT:\n%s" % e.stdout, file=sys.stderr)
                print("STDERR:\n%s" % e.stderr, file=sys.stderr)
            raise

        stop = time()
        elapsed = stop - start
        self.log.extend(
            [
                "# Stop command at %s" % ctime(stop),
                "# Elapsed = %f seconds" % elapsed,
            ]
        )

        if self.verboseFp:
            print("# Elapsed = %f seconds" % elapsed, file=self.verboseFp)

        return result


def missingTools(tools):
    """
    Find which of a set of tools are not available.

    @param tools: An iterable of C{str} executable names or paths.
    @return: A C{list} of the C{str} names in C{tools} that cannot be found
        on the PATH, in the order they were given.
    """
    return [tool for tool in tools if shutil.which(tool) is None]


def checkTools(tools):
    """
    Make sure a set of tools are all available.

    @param tools: An iterable of C{str} executable names or paths.
    @raise ToolMissingError: If any of the tools cannot be found.
    """
    missing = missingTools(tools)
    if missing:
        raise ToolMissingError(
            "Required command%s could not be found: %s."
            % ("" if len(missing) == 1 else "s", ", ".join(missing))
        )
