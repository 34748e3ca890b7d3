import sys
from pydantic import ValidationError

USAGE = '''BENCHDOCK - Frappe Docker Build and Deploy

Usage: benchdock [COMMAND] [OPTIONS]

Commands:
    init            Initialize project with sample configuration
    build           Build the Docker image with configured apps
    push            Push image to the container registry
    deploy          Deploy using docker compose
    stop            Stop all services
    down            Stop and remove all containers
    logs            Show logs from services
    exec            Execute command in backend container
    create-site     Create a new site
    backup          Backup sites
    clean           Clean up Docker images and volumes
    bootstrap       Wait for services, create the site, install apps, migrate

Options:
    -t, --tag       Specify image tag (default: latest)
    -f, --file      Specify apps.json file path
    -u, --user      Registry username (push)
    -r, --repo      Repository name (push, default: frappe-custom)
    -y, --yes       Do not ask before pruning volumes (clean)
    --env FILE      Read settings from FILE instead of ./.env
    -v, --verbose   Debug logging
    -h, --help      Show this help message

Examples:
    benchdock init                              # Initialize with sample config
    benchdock build -t v15                      # Build image with tag v15
    benchdock push -u username -r my-frappe -t v15
    benchdock deploy                            # Deploy all services
    benchdock exec bench --version              # Execute command in backend
    benchdock create-site mysite                # Create new site named 'mysite'
'''

# Options that take a value, per command
_VALUE_OPTIONS = {
    'build': {'-t': 'tag', '--tag': 'tag', '-f': 'file', '--file': 'file'},
    'push': {'-t': 'tag', '--tag': 'tag', '-u': 'user', '--user': 'user',
             '-r': 'repo', '--repo': 'repo'},
}
_FLAG_OPTIONS = {
    'clean': {'-y': 'yes', '--yes': 'yes'},
    'init': {'--force': 'force'},
}


def show_usage():
    from cli.ui import print_header
    print_header()
    print(USAGE)


def parse_options(command, args):
    '''Parse command options into a dict. Raises ValueError on unknown ones.'''
    value_opts = _VALUE_OPTIONS.get(command, {})
    flag_opts = _FLAG_OPTIONS.get(command, {})
    options = {}

    i = 0
    while i < len(args):
        arg = args[i]
        if arg in value_opts:
            if i + 1 >= len(args):
                raise ValueError(f"Option {arg} needs a value")
            options[value_opts[arg]] = args[i + 1]
            i += 2
        elif arg in flag_opts:
            options[flag_opts[arg]] = True
            i += 1
        else:
            raise ValueError(f"Unknown option: {arg}")
    return options


def split_global_options(argv):
    '''Pull --env/--verbose out of argv wherever they appear'''
    rest = []
    env_file = None
    verbose = False

    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == '--env' and i + 1 < len(argv):
            env_file = argv[i + 1]
            i += 2
            continue
        if arg in ('-v', '--verbose'):
            verbose = True
        else:
            rest.append(arg)
        i += 1
    return rest, env_file, verbose


def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)
    argv, env_file, verbose = split_global_options(argv)

    command = argv[0] if argv else ''
    args = argv[1:]

    if command in ('', 'help', '-h', '--help'):
        show_usage()
        return 0

    from config import get_settings
    from cli import commands
    from cli.ui import setup_logging, show_error

    try:
        settings = get_settings(env_file=env_file)
    except ValidationError as e:
        show_error(f"Invalid configuration: {e.errors()[0]['msg']}")
        return 1
    except ValueError as e:
        show_error(f"Invalid configuration: {e}")
        return 1

    setup_logging('DEBUG' if verbose else settings.log_level)

    # Commands that take free-form arguments
    if command == 'logs':
        return commands.show_logs(settings, args)
    if command == 'exec':
        return commands.exec_command(settings, args)
    if command == 'create-site':
        if not args:
            show_error("Site name is required")
            return 1
        return commands.create_site(settings, args[0])

    try:
        options = parse_options(command, args)
    except ValueError as e:
        show_error(str(e))
        show_usage()
        return 1

    if command == 'init':
        return commands.init_project(settings, force=options.get('force', False))
    if command == 'build':
        return commands.build_image(settings, options.get('tag', 'latest'), options.get('file'))
    if command == 'push':
        return commands.push_image(settings, options.get('tag', 'latest'),
                                   options.get('user'), options.get('repo'))
    if command == 'deploy':
        return commands.deploy_services(settings)
    if command == 'stop':
        return commands.stop_services(settings)
    if command == 'down':
        return commands.down_services(settings)
    if command == 'backup':
        return commands.backup_sites(settings)
    if command == 'clean':
        return commands.cleanup(settings, prune_volumes=True if options.get('yes') else None)
    if command == 'bootstrap':
        return commands.bootstrap_site(settings)

    show_error(f"Unknown command: {command}")
    show_usage()
    return 1


if __name__ == "__main__":
    sys.exit(main())
