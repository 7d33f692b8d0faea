import sys
import logging

from packnode_dev.log import setup_logging

log = logging.getLogger("console")


def main(argv=None) -> int:
    """The main entry point for the command-line tools."""
    args = list(sys.argv[1:] if argv is None else argv)
    verbose = "--verbose" in args
    if verbose:
        args = [arg for arg in args if arg != "--verbose"]

    setup_logging(logging.DEBUG if verbose else logging.INFO)

    # Imported after logging is configured so settings problems are reported properly.
    import packnode_dev.console as console

    if not args:
        console.print_help()
        return 0

    command, command_args = args[0].lower(), args[1:]
    try:
        return console.execute_command(command, command_args)
    except KeyboardInterrupt:
        log.warning("Interrupted.")
        return 130
    except Exception as e:
        log.error(f"An unexpected error occurred: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
