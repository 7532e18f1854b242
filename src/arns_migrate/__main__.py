from arns_migrate.cli import cli

if __name__ == '__main__':
    cli(prog_name='arns-migrate')
