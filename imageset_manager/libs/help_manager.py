"""
Help Manager

Serves the help and example text shipped with the tool.
"""

from pathlib import Path
from typing import List, Optional


class HelpManager:
    """Manages help text and documentation"""

    def __init__(self, help_dir: Optional[Path] = None):
        self.help_dir = Path(help_dir) if help_dir else Path(__file__).parent.parent / "help"

    def get_help(self, topic: str) -> str:
        """Get help text for a topic; dashes map to underscores in file names"""
        help_file = self.help_dir / f"{topic.replace('-', '_')}_help.txt"

        if help_file.exists():
            return help_file.read_text(encoding='utf-8')
        return f"No help available for command: {topic}"

    def get_main_help(self) -> str:
        return self.get_help("main")

    def get_examples(self, command: Optional[str] = None) -> str:
        """Examples for one command, or the general examples"""
        if command:
            return self.get_help(f"{command}_examples")
        return self.get_help("examples")

    def list_available_commands(self) -> List[str]:
        """Commands that ship an examples file"""
        commands = []
        for help_file in self.help_dir.glob("*_examples_help.txt"):
            commands.append(help_file.name[:-len("_examples_help.txt")].replace('_', '-'))
        return sorted(commands)

    def show_help(self, topic: Optional[str] = None) -> None:
        """Show help for a topic, or the main help"""
        if topic is None:
            print(self.get_main_help())
        else:
            print(self.get_help(topic))

    def show_examples(self, command: Optional[str] = None) -> None:
        print(self.get_examples(command))
