from pathselector.cli import app

app(prog_name="pathselector")
