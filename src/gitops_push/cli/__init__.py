"""Main CLI application module.

This module provides the main entry point for the gitops-push CLI.

Commands:
- push: Render the ArgoCD Application and push manifests to the GitOps repository
- render: Preview the rendered ArgoCD Application (or its values) locally
"""

import typer

from .commands import push, render

# Create the main CLI application
app = typer.Typer(
    help="🚀 gitops-push - Push ArgoCD applications to a GitOps repository",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("push")(push)
app.command("render")(render)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
