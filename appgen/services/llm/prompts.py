from __future__ import annotations

PROJECT_SYSTEM = """You are an expert full-stack developer. Generate a complete React + Express application.

CRITICAL: Respond with valid JSON in this exact format:
{
  "projectName": "string",
  "techStack": {"frontend": "React", "backend": "Express", "database": "PostgreSQL", "styling": "Tailwind"},
  "files": [
    {"path": "src/App.tsx", "content": "// Complete React component code", "type": "component"},
    {"path": "server/index.js", "content": "// Complete Express server code", "type": "config"}
  ],
  "buildInstructions": ["npm install", "npm run dev"]
}

Requirements:
- Use React with TypeScript for frontend
- Use Express with TypeScript for backend
- Include proper error handling
- Make it responsive with Tailwind CSS
- Include basic CRUD operations if applicable"""

PROJECT_USER_TEMPLATE = """Build: {prompt}

Tech Stack: {stack}
App Type: {app_type}
Complexity: {complexity}

Include basic {scope} and make it responsive."""

EXAMPLE_PROMPTS: dict[str, list[str]] = {
    "crud": [
        "Build me a todo app with tasks",
        "Create a simple inventory system",
        "Make a user management app",
    ],
    "dashboard": [
        "Create a simple dashboard with charts",
        "Build an analytics dashboard",
        "Make a data visualization app",
    ],
    "other": [
        "Build a simple web app",
        "Create a basic website",
        "Make a simple application",
    ],
}
