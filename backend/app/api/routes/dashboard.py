from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter()

DASHBOARD_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>Content Dashboard</title>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
        body { font-family: sans-serif; padding: 20px; background: #f0f2f5; }
        .container { max-width: 900px; margin: 0 auto; }
        .card { background: white; padding: 15px; margin-bottom: 10px; border-radius: 8px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); }
        .tag { background: #e0e7ff; color: #4338ca; padding: 2px 6px; border-radius: 4px; font-size: 0.8em; font-weight: bold; }
        .btn-project { display: block; width: 100%; text-align: left; padding: 10px; background: white; border: 1px solid #ddd; margin-bottom: 5px; cursor: pointer; }
        .btn-project:hover { background: #f9fafb; }
    </style>
</head>
<body>
    <div class="container">
        <h1>Content Dashboard</h1>
        <div id="list">Loading...</div>
        <hr>
        <div id="details"></div>
    </div>
    <script>
        const API = window.location.origin;

        function escapeHtml(value) {
            const div = document.createElement('div');
            div.textContent = value == null ? '' : String(value);
            return div.innerHTML;
        }

        async function loadProjects() {
            const res = await fetch(API + '/api/projects');
            const data = await res.json();
            document.getElementById('list').innerHTML = data.map(p =>
                `<button class="btn-project" onclick="loadDetails(${p.id})">
                    <strong>${escapeHtml(p.url)}</strong> (${escapeHtml(p.status)}) - ${new Date(p.created_at).toLocaleTimeString()}
                </button>`
            ).join('');
        }

        async function loadDetails(id) {
            document.getElementById('details').innerHTML = 'Loading...';
            const res = await fetch(API + '/api/projects/' + id);
            const data = await res.json();

            if (data.length === 0) {
                document.getElementById('details').innerHTML = '<p>No content yet... the agents are still working (or all of them failed).</p>';
                return;
            }

            document.getElementById('details').innerHTML = data.map(c => `
                <div class="card">
                    <span class="tag">${escapeHtml(c.agent_name)}</span>
                    <h3>${escapeHtml(c.hook)}</h3>
                    <p>${escapeHtml(c.idea)}</p>
                    <small style="color:gray">${escapeHtml(c.source)}</small>
                </div>
            `).join('');
        }

        loadProjects();
        setInterval(loadProjects, 10000);
    </script>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def dashboard() -> str:
    return DASHBOARD_HTML
