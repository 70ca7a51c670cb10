#!/usr/bin/env python3
"""MCP Server for the Pension Drawdown Comparator.

This server exposes strategy comparisons, UK tax calculations and synthetic
fund prices as MCP tools, allowing AI assistants to answer questions about
how drawdown strategies would have performed historically.
"""

import os
import sys
import json
import asyncio
from typing import Any

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from tools import MultiProgramTools


# Create the MCP server
server = Server("pension-drawdown-comparator")

# Global tools instance (initialized on startup)
tools: MultiProgramTools | None = None


def get_tools() -> MultiProgramTools:
    """Get or initialize the tools instance."""
    global tools
    if tools is None:
        # Default program can be set via DRAWDOWN_PROGRAM env var
        default_program = os.environ.get('DRAWDOWN_PROGRAM')
        base_path = os.path.join(os.path.dirname(__file__), '..')
        tools = MultiProgramTools(base_path, default_program)
    return tools


# Common program parameter schema
PROGRAM_PARAM = {
    "type": "string",
    "description": "The program name (folder in input-parameters). If not specified, uses the default program. Use list_programs to see available programs."
}

STRATEGY_PARAM = {
    "type": "string",
    "description": "Strategy id, e.g. 'gold', 'sp500', 'nasdaq100', 'ftse100', 'goldEtf', 'usTreasury' or a 50/50 blend such as 'gold-sp500'. Use list_strategies to see all ids."
}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available comparison tools."""
    return [
        Tool(
            name="list_programs",
            description="List all saved comparison programs with their strategies and inputs.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="reload_programs",
            description="Reload all comparison programs from disk. Use this after adding, modifying, or removing program spec.json files.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="get_program_overview",
            description="Get the inputs, strategies and headline result of a saved comparison program.",
            inputSchema={
                "type": "object",
                "properties": {
                    "program": PROGRAM_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="list_strategies",
            description="List the drawdown strategies that can be compared, optionally only those with data from a given start year.",
            inputSchema={
                "type": "object",
                "properties": {
                    "year": {
                        "type": "integer",
                        "description": "Optional: only list strategies available from this start year"
                    }
                },
                "required": []
            }
        ),
        Tool(
            name="compare_strategies",
            description="Simulate two drawdown strategies over the same historical period and report which realizes more value after tax and fees. Unspecified inputs come from the program, then defaults (gold vs sp500, £500,000, 2000, 4%, 25 years).",
            inputSchema={
                "type": "object",
                "properties": {
                    "strategy1": STRATEGY_PARAM,
                    "strategy2": STRATEGY_PARAM,
                    "pension_amount": {
                        "type": "number",
                        "description": "Starting pension value in GBP"
                    },
                    "start_year": {
                        "type": "integer",
                        "description": "First year of drawdown"
                    },
                    "withdrawal_rate": {
                        "type": "number",
                        "description": "Annual withdrawal as a percentage of the starting value"
                    },
                    "years": {
                        "type": "integer",
                        "description": "Number of years to simulate"
                    },
                    "costs": {
                        "type": "object",
                        "description": "Optional cost overrides: goldTransactionPercent, goldStorageFeePercent, sippManagementFeePercent, adjustForInflation"
                    },
                    "program": PROGRAM_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_yearly_comparison",
            description="Get asset values, withdrawals, tax, fees and status of both strategies for one year or every year of a program's comparison.",
            inputSchema={
                "type": "object",
                "properties": {
                    "year": {
                        "type": "integer",
                        "description": "Optional: specific year. If omitted, returns all years."
                    },
                    "program": PROGRAM_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_strategy_details",
            description="Get the detailed year-by-year drawdown records for one side of a program's comparison.",
            inputSchema={
                "type": "object",
                "properties": {
                    "side": {
                        "type": "integer",
                        "description": "1 for strategy1, 2 for strategy2"
                    },
                    "program": PROGRAM_PARAM
                },
                "required": ["side"]
            }
        ),
        Tool(
            name="get_key_insights",
            description="Get a narrative summary, key insights and the crossover year of a program's comparison.",
            inputSchema={
                "type": "object",
                "properties": {
                    "program": PROGRAM_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="calculate_tax",
            description="Calculate UK income tax on an amount for a tax year, optionally as a pension withdrawal with 25% tax free.",
            inputSchema={
                "type": "object",
                "properties": {
                    "amount": {
                        "type": "number",
                        "description": "Gross amount in GBP"
                    },
                    "year": {
                        "type": "integer",
                        "description": "Tax year"
                    },
                    "is_pension_withdrawal": {
                        "type": "boolean",
                        "description": "Treat the amount as a pension withdrawal (default false)"
                    }
                },
                "required": ["amount", "year"]
            }
        ),
        Tool(
            name="get_synthetic_price",
            description="Get the synthetic GBP fund price of an index for one year, or the whole price series.",
            inputSchema={
                "type": "object",
                "properties": {
                    "index": {
                        "type": "string",
                        "description": "Index id: sp500, nasdaq100, ftse100, goldEtf or usTreasury"
                    },
                    "year": {
                        "type": "integer",
                        "description": "Optional: specific year. If omitted, returns every year."
                    }
                },
                "required": ["index"]
            }
        )
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        dc_tools = get_tools()
        program = arguments.get("program")

        if name == "list_programs":
            result = dc_tools.list_programs()
        elif name == "reload_programs":
            result = dc_tools.reload_programs()
        elif name == "get_program_overview":
            result = dc_tools.get_program_overview(program)
        elif name == "list_strategies":
            result = dc_tools.list_strategies(arguments.get("year"))
        elif name == "compare_strategies":
            result = dc_tools.compare_strategies(
                arguments.get("strategy1"),
                arguments.get("strategy2"),
                arguments.get("pension_amount"),
                arguments.get("start_year"),
                arguments.get("withdrawal_rate"),
                arguments.get("years"),
                arguments.get("costs"),
                program
            )
        elif name == "get_yearly_comparison":
            result = dc_tools.get_yearly_comparison(arguments.get("year"), program)
        elif name == "get_strategy_details":
            result = dc_tools.get_strategy_details(arguments["side"], program)
        elif name == "get_key_insights":
            result = dc_tools.get_key_insights(program)
        elif name == "calculate_tax":
            result = dc_tools.calculate_tax(
                arguments["amount"],
                arguments["year"],
                arguments.get("is_pension_withdrawal", False)
            )
        elif name == "get_synthetic_price":
            result = dc_tools.get_synthetic_price(arguments["index"], arguments.get("year"))
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(
            type="text",
            text=json.dumps(result, indent=2, default=str)
        )]
    except Exception as e:
        return [TextContent(
            type="text",
            text=json.dumps({"error": str(e)}, indent=2)
        )]


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())
