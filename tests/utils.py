class RecordingOperationLogger:
    def __init__(self):
        self.operations = []

    def record_operation(self, operation):
        self.operations.append(operation)


def post_query(client, query, variables=None, operation_name=None):
    payload = {'query': query}
    if variables is not None:
        payload['variables'] = variables
    if operation_name is not None:
        payload['operationName'] = operation_name
    return client.post('/graphql', json=payload)
