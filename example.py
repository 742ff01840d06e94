"""
Example script to run the SQL agent and print the analysis summary.
"""

import os
import sys
from pathlib import Path
from dotenv import load_dotenv

import logging

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(message)s')

# Load environment variables
load_dotenv(override=True)

# Add src to path so we can import sqlchat
script_dir = Path(__file__).parent.absolute()
src_path = script_dir / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Import from the package
from sqlchat import (
    AgentConfig,
    agent_results,
    format_agent_result_to_markdown,
)


import argparse

def main():
    """Ask the agent one question about the configured database."""
    parser = argparse.ArgumentParser(description="Run the SQL agent on a question")
    parser.add_argument("question", nargs="?", default="Which country's customers spent the most?")
    args = parser.parse_args()

    config = AgentConfig.from_env()

    # Check for API key
    if not os.getenv(config.api_key_env_var):
        print(f"⚠️  Warning: {config.api_key_env_var} not found in environment")
        print("   Set it in your .env file or export it:")
        print(f"   export {config.api_key_env_var}=your_key_here")
        return

    if not Path(config.db_path).exists():
        print(f"❌ Error: database not found at {config.db_path}")
        print(f"   Current working directory: {Path.cwd()}")
        return

    results = agent_results(args.question, config)

    print(format_agent_result_to_markdown(results))
    print("=" * 80)


if __name__ == "__main__":
    main()
