from gamenite.railway.client import GraphQLClient

GET_WORKFLOW_STATUS_QUERY = """
query GetWorkflowStatus($workflowId: String!) {
  workflowStatus(workflowId: $workflowId) {
    error
    status
  }
}
"""


def get_workflow_status(client: GraphQLClient, workflow_id: str) -> dict[str, str]:
    data = client.execute(GET_WORKFLOW_STATUS_QUERY, {"workflowId": workflow_id})
    workflow = data.get("workflowStatus") or {}
    return {
        "status": workflow.get("status") or "",
        "error": workflow.get("error") or "",
    }
