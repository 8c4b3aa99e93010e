from __future__ import annotations

import json
from typing import List

from appgen.schemas import GeneratedFile, GeneratedProject, ProjectMetadata, ResolvedTechStack

MOCK_TOKENS_USED = 1500
MOCK_COST = 0.05

BUILD_INSTRUCTIONS = ["npm install", "npm run dev"]


def _package_json(project_name: str) -> str:
    return json.dumps(
        {
            "name": project_name,
            "version": "1.0.0",
            "scripts": {
                "dev": 'concurrently "cd frontend && npm run dev" "cd backend && npm run dev"',
                "build": "cd frontend && npm run build && cd ../backend && npm run build",
            },
            "dependencies": {"concurrently": "^8.2.2"},
        },
        indent=2,
    )


def _app_tsx(app_type: str, features: List[str]) -> str:
    title = app_type[:1].upper() + app_type[1:]
    items = "\n          ".join(f"<li>{f}</li>" for f in features)
    return f"""import React from 'react';

function App() {{
  return (
    <div className="min-h-screen bg-gray-100 p-8">
      <h1 className="text-3xl font-bold text-gray-900 mb-4">
        {title} App
      </h1>
      <p className="text-gray-600">Generated by AI App Generator</p>
      <div className="mt-8 p-4 bg-white rounded-lg shadow">
        <h2 className="text-xl font-semibold mb-2">Features:</h2>
        <ul className="list-disc list-inside">
          {items}
        </ul>
      </div>
    </div>
  );
}}

export default App;"""


def _server_ts(app_type: str) -> str:
    crud_routes = ""
    if app_type == "crud":
        crud_routes = """
app.get('/api/items', (req, res) => {
  res.json({ items: [] });
});

app.post('/api/items', (req, res) => {
  res.json({ message: 'Item created' });
});
"""
    return f"""import express from 'express';
import cors from 'cors';

const app = express();
const PORT = process.env.PORT || 3001;

app.use(cors());
app.use(express.json());

app.get('/api/health', (req, res) => {{
  res.json({{ status: 'ok', appType: '{app_type}' }});
}});
{crud_routes}
app.listen(PORT, () => {{
  console.log(`Server running on port ${{PORT}}`);
}});"""


def _app_test_tsx(app_type: str) -> str:
    title = app_type[:1].upper() + app_type[1:]
    return f"""import {{ render, screen }} from '@testing-library/react';
import App from './App';

test('renders the app title', () => {{
  render(<App />);
  expect(screen.getByText(/{title} App/)).toBeInTheDocument();
}});"""


def _readme(project_name: str, app_type: str, stack: ResolvedTechStack) -> str:
    stack_lines = "\n".join(f"- {p}" for p in (stack.frontend, stack.backend, stack.database, stack.styling) if p)
    return f"""# {project_name}

A simple {app_type} application.

## Setup
1. npm install
2. npm run dev

## Tech Stack
{stack_lines}"""


def build_mock_project(
    app_type: str,
    tech_stack: ResolvedTechStack,
    features: List[str],
    include_tests: bool = False,
) -> GeneratedProject:
    project_name = f"{app_type}-app"

    files = [
        GeneratedFile(path="package.json", content=_package_json(project_name), type="config"),
        GeneratedFile(path="frontend/src/App.tsx", content=_app_tsx(app_type, features), type="component"),
        GeneratedFile(path="backend/src/index.ts", content=_server_ts(app_type), type="config"),
        GeneratedFile(path="README.md", content=_readme(project_name, app_type, tech_stack), type="documentation"),
    ]
    if include_tests:
        files.append(GeneratedFile(path="frontend/src/App.test.tsx", content=_app_test_tsx(app_type), type="test"))

    return GeneratedProject(
        project_name=project_name,
        tech_stack=tech_stack,
        files=files,
        build_instructions=list(BUILD_INSTRUCTIONS),
        metadata=ProjectMetadata(tokens_used=MOCK_TOKENS_USED, estimated_cost=MOCK_COST),
    )
