from cardinality_analyzer.cli.main import cli

if __name__ == "__main__":
    cli()
