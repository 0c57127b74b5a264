import sys
from pathlib import Path

from pygevcam.logger import logger, set_console_level, add_logfile
from pygevcam.config import load_config
from pygevcam.examples import EXAMPLES, get_example


def _pop_flag(args, flag):
    if flag in args:
        args.remove(flag)
        return True
    return False


def _config_from_args(args):
    """[config file] [--sim] [--logfile], returns the merged config"""
    sim = _pop_flag(args, "--sim")
    logfile = _pop_flag(args, "--logfile")
    fname = None
    if args and not args[0].startswith("-"):
        fname = Path(args.pop(0)).resolve()
    overrides = {"backend": "sim"} if sim else {}
    config = load_config(fname, **overrides)
    set_console_level(config.get("log_level", "WARNING"))
    if logfile:
        add_logfile()
    logger.debug(f"running with backend {config['backend']}")
    return config


def example_usage():
    print("Usage: gev_example <name> [config file] [--sim] [--logfile]\n")
    print("Examples:")
    for name in EXAMPLES:
        print(f"    {name}")


def _run_gige_config(args):
    # every other argument belongs to the utility, only --sim is taken here
    overrides = {"backend": "sim"} if _pop_flag(args, "--sim") else {}
    config = load_config(**overrides)
    set_console_level(config.get("log_level", "WARNING"))
    return get_example("gige_config").main(args, config)


def example():
    args = sys.argv[1:]
    if not args or args[0] not in EXAMPLES:
        example_usage()
        sys.exit(-1)
    name = args.pop(0)
    if name == "gige_config":
        sys.exit(_run_gige_config(args))
    config = _config_from_args(args)
    sys.exit(get_example(name).main(config))


def gige_config():
    sys.exit(_run_gige_config(sys.argv[1:]))


if __name__ == "__main__":
    example()
