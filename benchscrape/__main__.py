from benchscrape.cli import run

run()
