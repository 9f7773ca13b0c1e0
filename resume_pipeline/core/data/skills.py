"""Canonical skill keyword list shared by entity extraction and fit scoring.

Matching is a case-insensitive substring test, so short entries such as
"Go" or "AI" also match inside longer words.
"""

SKILL_KEYWORDS = (
    # Languages
    "C#", "C++", "Java", "Python", "JavaScript", "TypeScript", "Go", "Rust", "Ruby", "PHP",
    # Frameworks
    ".NET", "ASP.NET", "Node.js", "React", "Angular", "Vue", "Django", "Flask", "Spring",
    # Cloud and delivery
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Jenkins", "Git", "CI/CD",
    # Data stores
    "SQL", "MySQL", "PostgreSQL", "MongoDB", "DynamoDB", "Redis", "Elasticsearch",
    # Architecture and process
    "REST", "GraphQL", "gRPC", "Microservices", "API", "Agile", "Scrum",
    # Data science
    "Machine Learning", "AI", "Data Science", "TensorFlow", "PyTorch",
    # Front end
    "HTML", "CSS", "SASS", "Bootstrap", "Tailwind",
    # Platforms and infrastructure
    "Linux", "Unix", "Windows", "MacOS", "Terraform", "Ansible", "CloudFormation", "Serverless", "Lambda",
    # Enterprise
    "SAP", "Salesforce", "Oracle EBS", "ERP", "CRM", "ABAP",
)


def find_skills(text: str, keywords=SKILL_KEYWORDS) -> list:
    """Keywords contained in ``text`` (case-insensitive), in keyword-list order."""
    if not text:
        return []
    haystack = text.lower()
    return [skill for skill in keywords if skill.lower() in haystack]
