from sonarcloud_issues.cli import cli

if __name__ == "__main__":
    cli()
